# apavs

Small, independent building blocks for an automation operator node that
watches an Ethereum chain and submits ERC-4337 user operations.

## Modules

### `apavs.storage`

An ordered key-value store kept in a directory (an SQLite file inside it).
Keys are compared bytewise; keys and prefixes may be given as `bytes` or `str`.

- `new_with_path(path)` opens (and creates, if needed) a `Storage` in `path`.
  `Storage(StorageConfig(path))` does the same. A `Storage` is a context
  manager that closes itself on exit.
- `set`, `get_key`, `exist`, `delete`, `move(src, dest)` and
  `batch_write(updates)` (all updates in one transaction).
- Prefix scans in key order: `get_by_prefix` (a list of `KeyValueItem` with
  `key` and `value`), `get_key_has_prefix`, `first_kv_has_prefix` (returns
  `(None, None)` when nothing matches) and `list_keys`, which returns keys as
  text and treats `"*"` alone or a trailing `*` as a wildcard.
- `get_key` and `move` raise `KeyNotFoundError` (a `KeyError`) when the key
  is absent.
- `get_sequence(prefix, inflight_items)` returns a `Sequence` whose `next()`
  hands out increasing integers, leasing `inflight_items` numbers at a time;
  `release()` gives back the unused part of the lease. `close()` releases
  every sequence it handed out.
- `vacuum()` reclaims space, `db_path()` returns the directory, and
  `destroy(storage)` closes a store and deletes its directory.

### `apavs.timekeeper`

`Elapsing` measures running time. `report()` returns a `timedelta` of the time
run since the previous report and starts a new interval; it returns zero while
paused. `pause()`, `resume()` and `reset()` control it; pausing a paused
stopwatch or resuming a running one raises `ElapsingStateError`. A custom
clock function can be passed to the constructor.

### `apavs.eip1559`

`suggest_fee(EthClient(url))` returns `(max_fee_per_gas,
max_priority_fee_per_gas)` in wei. The priority fee is the node's suggested
tip plus 13%; the max fee is twice the latest base fee plus the priority fee,
or the priority fee alone when the block has no base fee. `compute_fees(tip_cap,
base_fee)` does this arithmetic by itself. RPC failures raise `RpcError`.

### `apavs.graphql`

`Client(endpoint)` runs a `Request` and returns the `data` member of the
response. Requests are posted as JSON by default, or as multipart form data
(with files attached via `Request.file`) when `use_multipart_form=True`.
Variables are set with `Request.var`, headers through `Request.header`.
Non-2xx statuses, unreadable responses and GraphQL errors raise
`GraphQLError`; transport failures surface as `requests` exceptions. An
optional `log` callable receives a line describing each JSON request.

### `apavs.ipfetcher`

`get_ip()` fetches `https://icanhazip.com` and returns the stripped body, the
public IP address of this host. Another URL or a `requests.Session` can be
passed.

### `apavs.userop` and `apavs.bundler`

`UserOperation` holds an ERC-4337 user operation; `to_rpc()` turns it into the
hex-encoded JSON form bundlers accept. `GasEstimation.from_rpc(result)` reads
an `eth_estimateUserOperationGas` result, counting missing members as zero.

`BundlerClient(url)` talks JSON-RPC over HTTP(S) to a bundler:
`send_user_operation`, `estimate_user_operation_gas` (with an optional state
override set), `get_user_operation_by_hash` and `get_user_operation_receipt`.
Failures raise `BundlerError`, which carries the RPC error `code` when there
is one. The client is a context manager; `close()` closes a session it opened.

### `apavs.version`

`get()` returns the package version.

## What this package does not do

It has no command-line program and runs no operator: it does not register
with or connect to an aggregator, watch blocks or events, manage or encrypt
keys, or build and sign user operations. It provides the pieces above for a
program that does those things.

## Install

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
from apavs.storage import new_with_path
from apavs.timekeeper import Elapsing

with new_with_path("/tmp/apavs-data") as store:
    store.set(b"task:1", b"pending")
    print(store.get_by_prefix(b"task:"))
    counter = store.get_sequence(b"seq:tasks", 100)
    print(counter.next())

clock = Elapsing()
elapsed = clock.report()
```
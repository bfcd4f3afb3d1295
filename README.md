# schemamigrate

schemamigrate reads versioned migrations from a *source* and applies them to a
*database*. It can move up or down one or more steps, or go straight to a given
version. All the migration logic lives in `schemamigrate.migrate.Migrate`.
Source and database drivers only do small, simple jobs.

The package has no dependencies beyond the standard library.

## Installing

```
pip install schemamigrate
```

For running the test suite:

```
pip install "schemamigrate[test]"
pytest
```

## Migration files

A migration file name follows the pattern

```
<version>_<identifier>.<up|down>.<extension>
```

Some examples are `1_create_users.up.sql`, `1_create_users.down.sql` and
`20170412214116_add_index.up.sql`. Files whose names do not match are ignored
by the sources. A version can have an up migration, a down migration, or both.
If a version is missing one direction, it is still applied, with an empty body.

```python
from schemamigrate.source.migrations import parse, ParseError

m = parse("1_foobar.up.sql")
print(m.version, m.identifier, m.direction.value)   # 1 foobar up

try:
    parse("foobar.up.sql")
except ParseError:
    print("not a migration file")
```

`schemamigrate.source.migrations.Migrations` keeps parsed migrations in version
order, with `append`, `first`, `prev`, `next`, `up` and `down`. `append`
returns `False` for a second migration with the same version and direction.

## Sources

Every source subclasses `schemamigrate.source.driver.Driver`, with the methods
`open(url)`, `close()`, `first()`, `prev(version)`, `next(version)`,
`read_up(version)` and `read_down(version)`. The two read methods return an
unread binary file object and an identifier. When there is no first, previous
or next version, or no up or down body, a source raises `FileNotFoundError`.

Included sources:

- `schemamigrate.source.file.FileSource` reads one directory. Open it with a
  `file://` URL. A relative path is resolved against the working directory; an
  empty path means the working directory itself. `parse_url(url)` returns the
  directory a URL names.
- `schemamigrate.source.fsdriver.new(fs, path)` reads migrations found directly
  under `path` in a file tree. A tree is a `pathlib.Path`, a `zipfile.Path`, a
  plain path string, or any object with the same `joinpath`, `iterdir`,
  `is_dir`, `is_file`, `name` and `open` members. `PartialDriver` is the base
  class for writing your own tree source: subclass it, add `open`, and call
  `init(fs, path)`. A duplicate version and direction raises
  `DuplicateMigrationError`. `FsSource.open` always raises `ValueError`.
- `schemamigrate.source.bindata.with_instance(resource(names, asset_func))`
  reads migrations from in-memory assets. You supply the asset names and a
  function that returns the bytes for a name. `BindataSource.open` always
  raises `ValueError`.
- `schemamigrate.source.stub.StubSource` is an in-memory source for tests. Its
  bodies are the migrations' identifiers.

```python
from schemamigrate.source.file import FileSource

src = FileSource().open("file://migrations")
first = src.first()
body, identifier = src.read_up(first)
body.close()
```

Sources are registered by URL scheme with
`schemamigrate.source.driver.register(name, driver)`; `open_source(url)` picks
the driver by the scheme, and `list_drivers()` shows what is registered.
Importing `schemamigrate.source.file`, `schemamigrate.source.stub` and
`schemamigrate.source.bindata` registers `file`, `stub` and `bindata`.

## Databases

The package ships no database drivers. A database driver is any object with
these methods (see `schemamigrate.migrate.DatabaseDriver`):

| Method | Job |
| --- | --- |
| `lock()` / `unlock()` | take and release the database's migration lock |
| `version()` | return `(version, dirty)`; version -1 means none applied |
| `set_version(version, dirty)` | record the version and dirty flag |
| `run(body)` | execute a migration body read from a binary file object |
| `drop()` | delete everything in the database |
| `close()` | close the connection |

## Migrating

```python
from schemamigrate.migrate import new_with_instance
from schemamigrate.errors import NoChangeError

m = new_with_instance("file", src, "mydb", database_driver)

try:
    m.up()                 # apply every pending up migration
except NoChangeError:
    pass

m.steps(-1)                # go one migration down
m.migrate(4)               # go to version 4, up or down
version, dirty = m.version()
m.close()
```

`new_with_database_instance(source_url, database_name, database_instance)` does
the same, but opens the source from its URL. `Migrate` can also be built
directly and takes the keyword options `log`, `prefetch_migrations` (default
10) and `lock_timeout` in seconds (default 15). It works as a context manager
that closes source and database on exit; `close` raises
`schemamigrate.util.MultiError` if either close fails.

Other operations:

- `down()` applies every down migration.
- `force(version)` sets the version and clears the dirty flag.
- `drop()` removes everything from the database.
- `run(*migrations)` applies the given `schemamigrate.migration.Migration`
  objects without checking them against the source.
- Setting `m.graceful_stop` (a `threading.Event`) stops at the next point
  between migrations.

Pass `log=Logger(stream, verbose=True)` to write progress to a text stream;
without a stream, `Logger` writes to standard error.

The planning step is available on its own in `schemamigrate.planning`:
`read(source, from_version, to_version)`, `read_up(source, from_version, limit)`
and `read_down(source, from_version, limit)` are generators yielding the
migrations in the order they would run (a limit of -1 means no limit).

## Errors

The runner's errors are in `schemamigrate.errors` and derive from
`MigrateError`:

| Error | Meaning |
| --- | --- |
| `NoChangeError` | there was nothing to do |
| `NilVersionError` | no migration has been applied yet |
| `InvalidVersionError` | a forced version was below -1 |
| `DirtyError` | an earlier run failed midway; fix it and `force` a version |
| `LockedError` | the database lock is already held |
| `LockTimeoutError` | the lock could not be taken in time |
| `ShortLimitError` | fewer migrations were available than the steps asked for |

A version that does not exist in the source gives `FileNotFoundError`.

## What this package does not do

- It has no command-line tool; it is used from Python only.
- It includes no database drivers and cannot open a database from a URL.
- It has no sources for remote storage or code hosting services; only local
  directories, file trees, in-memory assets and the stub are included.
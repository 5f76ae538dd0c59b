# setrender

Building blocks for rendering GitOpsSets outside a cluster: fetching source
artifacts through a service proxy, serving repositories from a local
directory, and reading and writing multi-document YAML.

## Installation

```
pip install setrender
```

## Reading and writing documents

`setrender.output` works on resources as plain dictionaries.

- `split_documents(text)` splits the text on `---`, skips blank parts and
  decodes each remaining part with YAML. Every document must be a mapping with
  non-empty `apiVersion` and `kind` fields; otherwise `ValueError` is raised.
- `read_documents(filename)` reads a UTF-8 file and passes it to
  `split_documents`.
- `marshal_output(out, obj)` writes one object to a text stream as block-style
  YAML with sorted keys. Empty strings, and strings that would read back as
  another type (such as `"true"` or `"5"`), are written double-quoted.
- `output_resources(out, resources)` writes each resource preceded by a
  `---` line.

```python
import sys
from setrender.output import read_documents, output_resources

docs = read_documents("sets.yaml")
output_resources(sys.stdout, docs)
```

## Working without a cluster

`setrender.local_client` serves repository artifacts from a directory on disk.

`LocalObjectReader(repository_root, logger=None).get(name, namespace, obj)`
takes a source object as a dictionary and sets its
`status.artifact.url` to `file://<absolute repository root>/<name>`, then
returns the same dictionary. It accepts these `apiVersion`/`kind` pairs:

- `source.toolkit.fluxcd.io/v1` `GitRepository`
- `source.toolkit.fluxcd.io/v1beta2` `GitRepository`
- `source.toolkit.fluxcd.io/v1beta2` `OCIRepository`

Anything else raises `UnsupportedObjectError`, and `list(obj_list)` always
raises it.

`LocalFetcher(logger=None).fetch(archive_url, checksum, directory)` copies the
directory named by the path of a `file://` URL into `directory`. The checksum
is not checked.

```python
from setrender.local_client import LocalObjectReader, LocalFetcher

reader = LocalObjectReader("repos")
repo = reader.get("demo", "default", {
    "apiVersion": "source.toolkit.fluxcd.io/v1",
    "kind": "GitRepository",
})
LocalFetcher().fetch(repo["status"]["artifact"]["url"], "", "/tmp/workdir")
```

`copy_file(dst, src)` copies a file and its permission bits.
`copy_tree(dst, src)` copies a directory tree, creating directories that do
not exist yet and recreating symbolic links rather than following them.

## Fetching through a service proxy

`setrender.fetcher` handles artifacts served in-cluster at URLs of the form
`http://<name>.<namespace>.svc.<cluster>.<domain>.<tld>/<path>`: the host
must have exactly six dot-separated parts with `svc` third, and the path may
not be `/`. The port defaults to `80`.

- `parse_artifact_url(url)` returns a `ServiceRef` (`scheme`, `namespace`,
  `name`, `path`, `port`) or raises `ArtifactURLError`, a `ValueError`.
- `ProxyArchiveFetcher(client, max_untar_size=None).fetch(url, checksum,
  directory)` calls `client.proxy_get(scheme=..., namespace=..., name=...,
  port=..., path=...)`, which must return the archive bytes, and unpacks them
  into `directory`. The checksum is not verified.
- `extract_archive(fileobj, directory, max_size=None)` unpacks a tar stream
  (plain or compressed). Only directories and regular files are written;
  member paths are kept inside `directory`. If the total size of regular
  files exceeds `max_size`, or the archive cannot be read, `ValueError` is
  raised.

## What this package does not do

It does not evaluate GitOpsSet generators or templates, does not talk to a
Kubernetes API server, and provides no command-line program. It supplies the
input, output and artifact-access pieces that such a renderer would use.

## Running the tests

```
pip install -e ".[test]"
pytest
```
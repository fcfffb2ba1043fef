# appservice

Building blocks for describing application components and turning them into
deployable GitOps resources.

## What is in the package

- **Resource quantities** (`appservice.quantity`): `parse_quantity` reads
  values such as `500m`, `2`, `1Gi`, `400Mi` or `1e3` into an exact
  `Quantity`, and raises `QuantityError` on anything it cannot read.
  `str(quantity)` writes it back in the same style (decimal suffix, binary
  suffix or exponent).
- **Resource models** (`appservice.models`): dataclasses for `Component`,
  `ComponentSpec`, `Application`, `ApplicationSpec`, `ComponentDetectionQuery`,
  `EnvVar`, `GitSource` and `ResourceRequirements`, with the resource names
  `RESOURCE_CPU`, `RESOURCE_MEMORY`, `RESOURCE_STORAGE` and
  `RESOURCE_EPHEMERAL_STORAGE`.
- **Devfile models** (`appservice.devfile`): `parse_devfile_model` parses and
  checks devfile YAML into `DevfileData`; `Attributes` reads and writes
  component and metadata attributes; `convert_application_to_devfile` builds
  a schema 2.1.0 devfile holding an application's repositories as attributes.
- **Component updates** (`appservice.update`):
  `update_component_devfile_model` writes a component's route, replicas,
  target port, environment and resource limits and requests into the container
  components of a devfile; `update_application_devfile_model` adds the
  component's Git source as a devfile project; `update_component_stub` parses
  detected devfiles and records a component stub for each one in a
  `ComponentDetectionQuery`, keyed by devfile name. Progress is logged through
  the standard `logging` module.
- **Manifest generation** (`appservice.generate`): `generate` writes a
  `deployment.yaml`, and when the component has a target port a
  `service.yaml` and a `route.yaml`, plus a `kustomization.yaml`, into a
  folder. `generate_deployment`, `generate_service` and `generate_route`
  return the manifests as dictionaries.
- **GitOps push** (`appservice.gitops`): `generate_and_push` clones a GitOps
  repository, switches to (or creates) a branch, regenerates the component's
  resources under `<context>/components/<name>/base`, and commits and pushes
  only when `git diff --cached` reports changes. Commands run through an
  `Executor`; `CmdExecutor` (from `new_cmd_executor`) runs them as processes.
- **Scripted executor** (`appservice.mock_executor`): `MockExecutor` records
  each command as an `Execution` and answers from an `OutputStack` and an
  `ErrorStack`, for dry runs and tests; `error_match` checks an error message
  against a regular expression.
- **Filesystems** (`appservice.ioutils`): `OsFilesystem`, `MemoryFilesystem`
  and `ReadOnlyFilesystem` behind the `Filesystem` interface, with
  `is_existing` to refuse a path that is already taken.
- **YAML output** (`appservice.yaml_resources`): `write_resources`,
  `marshal_item_to_file` and `marshal_output` write items (dataclasses with
  `to_dict`, mappings, lists, quantities) as YAML with sorted keys; a leading
  `~` in the target path is expanded to the home directory.
- **Kustomize** (`appservice.kustomization`): `Kustomization` keeps its
  resource list free of duplicates and sorted.
- **Repository helpers** (`appservice.util`, `appservice.github`): name
  sanitising, raw GitHub URL conversion, devfile download and discovery in a
  cloned repository, and repository creation and deletion through
  `GitHubClient`.

## Examples

Sanitise a display name (lower-cased, spaces become dashes, quotes dropped,
cut at 50 characters):

```python
from appservice.util import sanitize_name

sanitize_name("Pet Clinic Application")  # "pet-clinic-application"
```

Turn a GitHub repository URL into the base of its raw-content URL:

```python
from appservice.util import convert_github_url

convert_github_url("https://github.com/devfile/api/tree/2.1.x")
# "https://raw.githubusercontent.com/devfile/api/2.1.x"
```

Keep a kustomization's resource list free of duplicates and sorted:

```python
from appservice.kustomization import Kustomization

k = Kustomization()
k.add_resources("service.yaml", "deployment.yaml")
k.add_resources("deployment.yaml")
k.resources  # ["deployment.yaml", "service.yaml"]
```

Generate manifests into an in-memory filesystem:

```python
from appservice.generate import generate
from appservice.ioutils import new_memory_filesystem
from appservice.models import Component, ComponentSpec

fs = new_memory_filesystem()
component = Component(
    name="web",
    namespace="demo",
    spec=ComponentSpec(target_port=8080, container_image="quay.io/example/web:latest"),
)
generate(fs, "/out", component)
print(fs.read_bytes("/out/kustomization.yaml").decode())
# resources:
# - deployment.yaml
# - route.yaml
# - service.yaml
```

Dry-run a GitOps push with the scripted executor (an empty diff means no
commit and no push):

```python
from appservice.gitops import generate_and_push
from appservice.mock_executor import MockExecutor

executor = MockExecutor()
generate_and_push("/work", "https://example.com/org/gitops.git", component,
                  executor, fs, "main", "/")
[e.args[0] for e in executor.executed]
# ["clone", "switch", "-rf", "add", "--no-pager"]
```

Refuse a path that is already taken:

```python
from appservice.ioutils import AlreadyExistsError, is_existing, new_memory_filesystem

fs = new_memory_filesystem()
fs.makedirs("/tmp")
fs.write_bytes("/tmp/test-file", b"")
try:
    is_existing(fs, "/tmp/test-file")
except AlreadyExistsError as exc:
    print(exc)  # "test-file": File already exists at /tmp/test-file
```

Extract a repository name from its URL:

```python
from appservice.github import get_repo_name_from_url

get_repo_name_from_url(
    "https://github.com/redhat-appstudio-appdata/test-repo-1",
    "redhat-appstudio-appdata",
)  # "test-repo-1"
```

## Errors

Failures are raised as exceptions, each from the module that defines it:
`QuantityError`, `DevfileError`, `AttributeKeyNotFound`,
`AlreadyExistsError`, `ResourceWriteError`, `UpdateError`, `GitOpsError`,
`CommandError`, `GitHubError`, `DevfileNotFoundError` and `EndpointError`.
`get_repo_name_from_url` and `convert_github_url` raise `ValueError` on input
they cannot handle.

## What the package does not do

This is a library only. It has no command-line program, and it does not run
as a controller or service: nothing here watches a cluster, reconciles
resources, serves webhooks or stores state. Callers build the model objects
themselves and call the functions above.

## Testing

The test suite uses pytest and responses, installable through the `test`
extra.
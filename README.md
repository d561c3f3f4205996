# vessl

`vessl` is a small command-line tool for managing Docker containers. It talks
directly to the Docker Engine API over the local Unix socket, or over TCP to the
host named by `DOCKER_HOST`, using only the Python standard library.

## Installation

```
pip install .
```

## Usage

```
vessl list                       # all containers, running or not
vessl create                     # prompts for a container name and an image
vessl start <container>
vessl stop <container>
vessl remove [-f|--force] <container>
vessl inspect [-j|--json] <container>
vessl logs [-f|--follow] [-t|--tail N] <container>
vessl ports <container>          # port mappings and network details
vessl stats [container]          # resource usage snapshot
vessl images                     # local images with their sizes
vessl pull <image>
vessl exec <container> <command> [args...]
```

Running `vessl` with no command prints the help.

- `vessl create` pulls the image from the registry first when no local image
  carries exactly that tag, then creates the container and prints its ID.
- `vessl inspect` prints the ID, name, image, status and creation time; with
  `--json` it prints the full inspection document.
- `vessl stats <container>` prints one line for that container. Without a
  container it prints a line for every running container and then waits until
  interrupted with Ctrl-C.
- `vessl exec` sends standard input to the command and copies its output to
  standard output.

When a command fails, the daemon's error is printed and the exit status is 1.

## Configuration

By default the Docker daemon is reached at `unix:///var/run/docker.sock`.
Set `DOCKER_HOST` to use another daemon, for example `tcp://127.0.0.1:2375`
(`tcp://` hosts without a port use 2375). Set `DOCKER_API_VERSION` to pin
the API version used in request paths.

## Library use

The Engine API client can be used on its own:

```python
from vessl.client import DockerClient

with DockerClient.from_env() as docker:
    for container in docker.container_list(all=True):
        print(container["Id"][:12], container["Image"])
```

`DockerClient` also offers `image_list`, `image_pull`, `container_create`,
`container_start`, `container_stop`, `container_remove`, `container_inspect`,
`container_logs`, `container_stats`, `exec_create` and `exec_attach`.
Failures from the daemon, or failures to reach it, are raised as
`vessl.client.DockerError`, whose `status` holds the HTTP status when there
is one.

The display helpers in `vessl.formatting` (`format_size`, `format_bytes`,
`calculate_cpu_percent`, `split_repo_tag`, `format_created`, `port_rows`,
`stats_row`) work on the plain dictionaries the API returns.

## Limitations

Only plain HTTP is supported: TLS connections to a remote daemon
(`DOCKER_TLS_VERIFY`, client certificates) are not.

## Running the tests

```
pip install ".[test]"
pytest
```
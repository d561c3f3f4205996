"""Command-line interface for managing Docker containers."""

from __future__ import annotations

import argparse
import json
import sys
import threading
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager

from .client import DockerClient, DockerError
from .formatting import format_created, format_size, port_rows, split_repo_tag, stats_row

DESCRIPTION = (
    "Vessl is a tool for managing docker containers.\n"
    "It allows you to create, start, stop, and remove docker containers.\n"
    "It also allows you to list and inspect docker containers."
)

_CHUNK = 65536
_EXEC_DRAIN_SECONDS = 1.0
_print_lock = threading.Lock()


class _CommandFailed(Exception):
    """A command could not finish; the message is shown to the user."""


@contextmanager
def _failing_as(context: str) -> Iterator[None]:
    try:
        yield
    except DockerError as exc:
        raise _CommandFailed(f"{context}: {exc}") from exc


def _connect(context: str = "Error creating docker client") -> DockerClient:
    with _failing_as(context):
        return DockerClient.from_env()


def _say(*parts: object, end: str = "\n") -> None:
    with _print_lock:
        print(*parts, end=end, flush=True)


def _write_stdout(data: bytes) -> None:
    sys.stdout.flush()
    target = getattr(sys.stdout, "buffer", None)
    if target is None:
        sys.stdout.write(data.decode("utf-8", "replace"))
        sys.stdout.flush()
    else:
        target.write(data)
        target.flush()


def _copy_to_stdout(chunks: Iterable[bytes]) -> None:
    for chunk in chunks:
        _write_stdout(chunk)


def _stdin_chunks() -> Iterator[bytes]:
    source = getattr(sys.stdin, "buffer", None)
    if source is None:
        while text := sys.stdin.readline():
            yield text.encode()
        return
    read = getattr(source, "read1", source.read)
    while chunk := read(_CHUNK):
        yield chunk


def _read_line(prompt: str) -> str:
    print(prompt, end="", flush=True)
    line = sys.stdin.readline()
    if not line.endswith("\n"):
        raise _CommandFailed("Error reading input: EOF")
    return line.strip()


# -- commands ---------------------------------------------------------------


def _create(args: argparse.Namespace) -> int:
    container_name = _read_line("Enter the container name:")
    image_name = _read_line("Enter the image name:")

    with _connect() as client:
        with _failing_as("Error listing images"):
            images = client.image_list()

        exists = any(image_name in (image.get("RepoTags") or []) for image in images)
        if not exists:
            print("Image not found locally. Pulling from the Docker hub.....")
            with _failing_as("Error pulling image"):
                progress = client.image_pull(image_name)
            with progress:
                _copy_to_stdout(progress)

        with _failing_as("Error creating container"):
            container_id = client.container_create(image_name, container_name)

    print(f"Container {container_name} created with ID: {container_id}")
    return 0


def _pump_output(session) -> None:
    try:
        _copy_to_stdout(session)
    except (OSError, ValueError):
        pass


def _exec(args: argparse.Namespace) -> int:
    with _connect() as client:
        with _failing_as("Error creating exec"):
            exec_id = client.exec_create(args.container, args.cmd)
        with _failing_as("Error attaching to exec"):
            session = client.exec_attach(exec_id)

        with session:
            output = threading.Thread(target=_pump_output, args=(session,), daemon=True)
            output.start()
            try:
                for chunk in _stdin_chunks():
                    session.write(chunk)
                session.close_write()
            except OSError:
                pass
            output.join(_EXEC_DRAIN_SECONDS)
    return 0


def _images(args: argparse.Namespace) -> int:
    with _connect() as client:
        with _failing_as("Error listing images"):
            images = client.image_list()

    print(f"{'IMAGE ID':<12} {'REPOSITORY':<20} {'TAG':<15} SIZE")
    print("-" * 70)
    for image in images:
        repo, tag = split_repo_tag(image.get("RepoTags"))
        image_id = image.get("Id", "")[:12]
        print(f"{image_id:<12} {repo:<20} {tag:<15} {format_size(image.get('Size') or 0)}")
    return 0


def _inspect(args: argparse.Namespace) -> int:
    with _connect() as client:
        with _failing_as("Error inspecting container"):
            info = client.container_inspect(args.container)

    if args.json:
        print(json.dumps(info, indent=2))
        return 0

    config = info.get("Config") or {}
    state = info.get("State") or {}
    print(f"Container ID: {info.get('Id', '')}")
    print(f"Name: {info.get('Name', '')}")
    print(f"Image: {config.get('Image', '')}")
    print(f"Status: {state.get('Status', '')}")
    print(f"Created: {info.get('Created', '')}")
    return 0


def _list(args: argparse.Namespace) -> int:
    with _connect("Failed to create docker client") as client:
        with _failing_as("Failed to list containers"):
            containers = client.container_list(all=True)

    print(f"{'CONTAINER ID':<12} {'IMAGE':<20} {'COMMAND':<30} {'CREATED':<15} STATUS")
    print("-" * 100)
    for container in containers:
        created = format_created(container.get("Created") or 0)
        name = (container.get("Names") or [""])[0]
        print(
            f"{container.get('Id', '')[:12]:<12} {container.get('Image', ''):<20} "
            f"{name:<30} {created:<15} {container.get('Status', '')}"
        )
    return 0


def _logs(args: argparse.Namespace) -> int:
    with _connect() as client:
        with _failing_as("Error fetching logs"):
            logs = client.container_logs(args.container, follow=args.follow, tail=args.tail)
        with logs:
            _copy_to_stdout(logs)
    return 0


def _ports(args: argparse.Namespace) -> int:
    with _connect() as client:
        with _failing_as("Error inspecting container"):
            info = client.container_inspect(args.container)

    print(f"Port mappings for container: {args.container}")
    print("-" * 50)

    settings = info.get("NetworkSettings") or {}
    ports = settings.get("Ports") or {}
    if not ports:
        print("No port mappings found")
        return 0

    print(f"{'CONTAINER PORT':<15} {'HOST PORT':<15} PROTOCOL")
    print("-" * 50)
    for container_port, host_port, protocol in port_rows(ports):
        print(f"{container_port:<15} {host_port:<15} {protocol}")

    print("\nNetwork Information:")
    print("-" * 30)
    for network_name, network in (settings.get("Networks") or {}).items():
        network = network or {}
        print(f"Network: {network_name}")
        print(f"  IP Address: {network.get('IPAddress', '')}")
        print(f"  Gateway: {network.get('Gateway', '')}")
        print(f"  Mac Address: {network.get('MacAddress', '')}")
        print()
    return 0


def _pull(args: argparse.Namespace) -> int:
    with _connect() as client:
        print(f"Pulling image: {args.image}", flush=True)
        with _failing_as("Error pulling image"):
            progress = client.image_pull(args.image)
        with progress:
            _copy_to_stdout(progress)
    print(f"Successfully pulled image: {args.image}")
    return 0


def _remove(args: argparse.Namespace) -> int:
    with _connect() as client:
        with _failing_as("Error removing container"):
            client.container_remove(args.container, force=args.force)
    print(f"Container {args.container} removed successfully")
    return 0


def _start(args: argparse.Namespace) -> int:
    with _connect() as client:
        with _failing_as("Error starting container"):
            client.container_start(args.container)
    print(f"Container {args.container} started successfully")
    return 0


def _stop(args: argparse.Namespace) -> int:
    with _connect() as client:
        with _failing_as("Error stopping container"):
            client.container_stop(args.container)
    print(f"Container {args.container} stopped successfully")
    return 0


def _display_stats(client: DockerClient, container_id: str, name: str) -> bool:
    try:
        stats = client.container_stats(container_id)
    except DockerError as exc:
        _say(f"Error getting stats for {name}: {exc}")
        return False
    try:
        row = stats_row(container_id, name, stats or {})
    except (ValueError, TypeError, AttributeError) as exc:
        _say(f"Error decoding stats: {exc}")
        return False
    _say(row)
    return True


def _stats(args: argparse.Namespace) -> int:
    with _connect() as client:
        if args.container is not None:
            return 0 if _display_stats(client, args.container, args.container) else 1

        with _failing_as("Error listing containers"):
            containers = client.container_list()

        _say(
            f"{'CONTAINER':<12} {'NAME':<20} {'CPU %':<8} {'MEM USAGE':<8} "
            f"{'MEM %':<8} {'NET I/O':<8} {'BLOCK I/O':<8} PIDS"
        )
        _say("-" * 100)
        for container in containers:
            if container.get("State") == "running":
                name = (container.get("Names") or [""])[0]
                threading.Thread(
                    target=_display_stats,
                    args=(client, container.get("Id", ""), name),
                    daemon=True,
                ).start()

        try:
            threading.Event().wait()
        except KeyboardInterrupt:
            pass
    return 0


# -- entry point ------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with every subcommand."""
    parser = argparse.ArgumentParser(
        prog="vessl",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.set_defaults(handler=None, command=None)
    commands = parser.add_subparsers(dest="command", metavar="command")

    def command(name: str, help_text: str, handler) -> argparse.ArgumentParser:
        sub = commands.add_parser(name, help=help_text, description=help_text)
        sub.set_defaults(handler=handler)
        return sub

    command("create", "Create a new docker container", _create)

    sub = command("exec", "Run a command in a running container", _exec)
    sub.add_argument("container", metavar="container-name")
    sub.add_argument("cmd", metavar="command", nargs=argparse.REMAINDER)

    command("images", "List images", _images)

    sub = command("inspect", "Display detailed information on a container", _inspect)
    sub.add_argument("container", metavar="container-name")
    sub.add_argument("-j", "--json", action="store_true", help="Output in JSON format")

    command("list", "List all docker containers", _list)

    sub = command("logs", "Fetch the logs of a container", _logs)
    sub.add_argument("container", metavar="container-name")
    sub.add_argument("-f", "--follow", action="store_true", help="Follow log output")
    sub.add_argument(
        "-t", "--tail", default="", help="Number of lines to show from the end of the logs"
    )

    sub = command("ports", "List port mappings for a container", _ports)
    sub.add_argument("container", metavar="container-name")

    sub = command("pull", "Pull an image from a registry", _pull)
    sub.add_argument("image", metavar="image-name")

    sub = command("remove", "Remove a docker container", _remove)
    sub.add_argument("container", metavar="container-ID")
    sub.add_argument("-f", "--force", action="store_true", help="Force removal of the container")

    sub = command("start", "Start a docker container", _start)
    sub.add_argument("container", metavar="container-ID")

    sub = command(
        "stats", "Display a live stream of container resource usage statistics", _stats
    )
    sub.add_argument("container", metavar="container-name", nargs="?")

    sub = command("stop", "Stop a docker container", _stop)
    sub.add_argument("container", metavar="container-ID")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line and return the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.handler is None:
        parser.print_help()
        return 0
    if args.command == "exec" and not args.cmd:
        parser.error("exec requires a container name and a command")
    try:
        return args.handler(args)
    except _CommandFailed as exc:
        print(exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
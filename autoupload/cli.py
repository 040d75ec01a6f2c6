"""Command-line interface for autoupload."""

from __future__ import annotations

import argparse
import getpass
import logging
from pathlib import Path
from typing import Callable, Optional, Sequence

try:
    import argcomplete
    ARGCOMPLETE_AVAILABLE = True
except ImportError:
    ARGCOMPLETE_AVAILABLE = False

from . import __version__, config, types
from .daemon import WorkspaceWatcher
from .daemon.watcher import DEFAULT_INTERVAL_SECONDS
from .engine.orchestrator import OperationError, SyncOrchestrator
from .logging import configure_logging
from .notifier import LoggingNotifier

# Import completers if argcomplete is available
if ARGCOMPLETE_AVAILABLE:
    from . import completion

Handler = Callable[[argparse.Namespace], int]
logger = logging.getLogger(__name__)

TRANSFER_COMMANDS = (
    (types.OperationKind.UPLOAD_FILE, "Upload a file to its mirrored remote path."),
    (types.OperationKind.DOWNLOAD_FILE, "Download a file from its mirrored remote path."),
    (types.OperationKind.UPLOAD_FOLDER, "Recursively upload a folder."),
    (types.OperationKind.DOWNLOAD_FOLDER, "Recursively download a folder."),
)


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI parser with all supported subcommands."""
    parser = argparse.ArgumentParser(
        prog="autoupload",
        description="Mirror workspace files to an SFTP or FTP server.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    workspace_arg = parser.add_argument(
        "--workspace",
        help="Workspace root holding .vscode/sftp.json (defaults to the nearest one above the path).",
    )
    if ARGCOMPLETE_AVAILABLE:
        workspace_arg.completer = completion.directory_completer
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (can be repeated).",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="count",
        default=0,
        help="Decrease logging verbosity (can be repeated).",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)

    for kind, help_text in TRANSFER_COMMANDS:
        transfer_parser = subparsers.add_parser(kind.value, help=help_text)
        _add_path_argument(transfer_parser, "path", "Local path inside the workspace.")
        transfer_parser.set_defaults(func=_handle_transfer, kind=kind)

    delete_parser = subparsers.add_parser(
        "delete",
        help="Delete the remote counterpart of a local path.",
    )
    _add_path_argument(delete_parser, "path", "Local path whose remote copy should be removed.")
    delete_parser.add_argument(
        "--folder",
        action="store_true",
        help="Treat the path as a folder and delete it recursively.",
    )
    delete_parser.set_defaults(func=_handle_delete)

    rename_parser = subparsers.add_parser(
        "rename",
        help="Rename a remote file or folder.",
    )
    _add_path_argument(rename_parser, "old", "Current local path.")
    _add_path_argument(rename_parser, "new", "New local path.")
    rename_parser.set_defaults(func=_handle_rename)

    save_parser = subparsers.add_parser(
        "save",
        help="Handle a save notification (uploads when uploadOnSave is enabled).",
    )
    _add_path_argument(save_parser, "path", "Saved local file.")
    save_parser.set_defaults(func=_handle_save)

    watch_parser = subparsers.add_parser(
        "watch",
        help="Watch the workspace and mirror saves and deletions.",
    )
    watch_parser.add_argument(
        "--interval",
        type=float,
        default=DEFAULT_INTERVAL_SECONDS,
        help="Seconds between workspace scans.",
    )
    watch_parser.add_argument(
        "--once",
        action="store_true",
        help="Scan twice, mirror the changes in between, then exit.",
    )
    watch_parser.add_argument(
        "--log-file",
        help="Also write log output to this file.",
    )
    watch_parser.set_defaults(func=_handle_watch)

    init_parser = subparsers.add_parser(
        "init",
        help="Create .vscode/sftp.json via interactive prompts.",
    )
    protocol_arg = init_parser.add_argument(
        "--protocol",
        choices=[protocol.value for protocol in types.Protocol],
        help="Protocol to configure; prompted for when omitted.",
    )
    if ARGCOMPLETE_AVAILABLE:
        protocol_arg.completer = completion.protocol_completer
    init_parser.set_defaults(func=_handle_init)

    return parser


def _add_path_argument(subparser: argparse.ArgumentParser, name: str, help_text: str) -> None:
    argument = subparser.add_argument(name, help=help_text)
    if ARGCOMPLETE_AVAILABLE:
        argument.completer = completion.local_path_completer


def _build_orchestrator(args: argparse.Namespace) -> SyncOrchestrator:
    return SyncOrchestrator(notifier=LoggingNotifier(), workspace_root=args.workspace)


def _handle_transfer(args: argparse.Namespace) -> int:
    orchestrator = _build_orchestrator(args)
    try:
        orchestrator.execute(args.kind, args.path)
    except (config.ConfigError, OperationError) as exc:
        logger.error("%s", exc)
        return 1
    return 0


def _handle_delete(args: argparse.Namespace) -> int:
    is_folder = args.folder or Path(args.path).is_dir()
    kind = types.OperationKind.DELETE_FOLDER if is_folder else types.OperationKind.DELETE_FILE
    orchestrator = _build_orchestrator(args)
    try:
        orchestrator.execute(kind, args.path)
    except (config.ConfigError, OperationError) as exc:
        logger.error("%s", exc)
        return 1
    return 0


def _handle_rename(args: argparse.Namespace) -> int:
    orchestrator = _build_orchestrator(args)
    try:
        orchestrator.execute(types.OperationKind.RENAME, args.old, target=args.new)
    except (config.ConfigError, OperationError) as exc:
        logger.error("%s", exc)
        return 1
    return 0


def _handle_save(args: argparse.Namespace) -> int:
    orchestrator = _build_orchestrator(args)
    event = types.TriggerEvent(local_path=Path(args.path), kind=types.EventKind.SAVED)
    try:
        result = orchestrator.handle_event(event)
    except (config.ConfigError, OperationError) as exc:
        logger.error("%s", exc)
        return 1
    if result is None:
        logger.info("Nothing uploaded for %s (uploadOnSave disabled or path ignored).", args.path)
    return 0


def _handle_watch(args: argparse.Namespace) -> int:
    try:
        workspace_root = Path(args.workspace) if args.workspace else config.find_workspace_root(Path.cwd())
        config.load_server_config(workspace_root)
    except config.ConfigError as exc:
        logger.error("%s", exc)
        return 1
    watcher = WorkspaceWatcher(workspace_root, interval=args.interval)
    watcher.run_forever(run_once=args.once, log_file=args.log_file)
    return 0


def _handle_init(args: argparse.Namespace) -> int:
    wizard = InitWizard(workspace=args.workspace)
    try:
        config_path = wizard.run(args.protocol)
    except config.ConfigError as exc:
        logger.error("%s", exc)
        return 1
    logger.info("Configuration written to %s.", config_path)
    return 0


class InitWizard:
    """Interactive creation of the workspace descriptor."""

    def __init__(
        self,
        *,
        workspace: Optional[str] = None,
        input_func: Callable[[str], str] | None = None,
        password_func: Callable[[str], str] | None = None,
    ):
        self._workspace = Path(workspace).expanduser() if workspace else Path.cwd()
        self._input = input_func or input
        self._password = password_func or getpass.getpass

    def run(self, provided_protocol: Optional[str]) -> Path:
        protocol = types.Protocol(provided_protocol) if provided_protocol else self._prompt_protocol()
        host = self._prompt("Host")
        port = self._prompt_port(protocol)
        username = self._prompt("Username")
        password = None
        private_key = None
        if protocol == types.Protocol.SFTP and self._confirm("Authenticate with a private key?", default=False):
            private_key = self._prompt("Private key file", default="~/.ssh/id_ed25519")
        else:
            password = self._prompt_password()
        remote_path = self._prompt("Remote path", default="/")
        upload_on_save = self._confirm("Upload files automatically on save?", default=True)
        use_default_ignore = self._confirm(
            "Include default ignore patterns (.git, .vscode, node_modules, __pycache__)?", default=True
        )
        server_config = types.ServerConfig(
            protocol=protocol,
            host=host,
            port=port,
            username=username,
            password=password,
            private_key=private_key,
            remote_path=remote_path,
            upload_on_save=upload_on_save,
            ignore=tuple(config.DEFAULT_IGNORE_PATTERNS if use_default_ignore else []),
        )
        target = config.config_path_for(self._workspace)
        if target.exists():
            if not self._confirm(f"{target} already exists. Overwrite?", default=False):
                raise config.ConfigError(f"Refused to overwrite existing {target}.")
        return config.write_server_config(self._workspace, server_config)

    def _prompt_protocol(self) -> types.Protocol:
        while True:
            value = self._prompt("Protocol [sftp/ftp]", default=types.Protocol.SFTP.value).lower()
            if value in {protocol.value for protocol in types.Protocol}:
                return types.Protocol(value)
            logger.warning("Please enter 'sftp' or 'ftp'.")

    def _prompt_port(self, protocol: types.Protocol) -> Optional[int]:
        default_port = types.DEFAULT_PORTS[protocol.value]
        while True:
            value = self._prompt("Port", default=str(default_port))
            if value.isdigit() and 0 < int(value) < 65536:
                port = int(value)
                return None if port == default_port else port
            logger.warning("Please enter a port between 1 and 65535.")

    def _prompt_password(self) -> str:
        while True:
            response = self._password("Password: ")
            if response:
                return response
            logger.warning("This field is required.")

    def _prompt(self, message: str, *, default: Optional[str] = None) -> str:
        prompt_text = f"{message}"
        if default:
            prompt_text += f" [{default}]"
        prompt_text += ": "
        while True:
            response = self._input(prompt_text).strip()
            if response:
                return response
            if default is not None:
                return default
            logger.warning("This field is required.")

    def _confirm(self, message: str, *, default: bool) -> bool:
        suffix = "Y/n" if default else "y/N"
        prompt_text = f"{message} ({suffix}): "
        while True:
            response = self._input(prompt_text).strip().lower()
            if not response:
                return default
            if response in {"y", "yes"}:
                return True
            if response in {"n", "no"}:
                return False
            logger.warning("Please answer yes or no.")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for console_scripts."""
    parser = build_parser()

    # Enable argcomplete if available
    if ARGCOMPLETE_AVAILABLE:
        argcomplete.autocomplete(parser)

    args = parser.parse_args(list(argv) if argv is not None else None)
    configure_logging(verbose=args.verbose, quiet=args.quiet)
    handler: Handler = getattr(args, "func")
    return handler(args)


if __name__ == "__main__":  # pragma: no cover - manual execution guard
    raise SystemExit(main())

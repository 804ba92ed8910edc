"""naether command line: resolve, classpath, local-path, install and deploy.

    Returns:
        int: Exit code
"""
from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from args import parse_args
from cli_config import apply_config, load_config
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import Constants, ExitCodes
from errors import ErrorKind, NaetherError
from naether import Naether, dependency_dict

logger = logging.getLogger(__name__)

_EXIT_BY_KIND = {
    ErrorKind.MALFORMED_NOTATION: ExitCodes.USAGE_ERROR,
    ErrorKind.INVALID_URL: ExitCodes.USAGE_ERROR,
    ErrorKind.CONFIG: ExitCodes.FILE_ERROR,
    ErrorKind.PROJECT: ExitCodes.FILE_ERROR,
    ErrorKind.REPOSITORY_MANAGER_INIT: ExitCodes.FILE_ERROR,
    ErrorKind.DEPENDENCY_COLLECTION: ExitCodes.RESOLUTION_ERROR,
    ErrorKind.DEPENDENCY_RESOLUTION: ExitCodes.RESOLUTION_ERROR,
    ErrorKind.CANCELLED: ExitCodes.RESOLUTION_ERROR,
    ErrorKind.INSTALL: ExitCodes.INSTALL_ERROR,
    ErrorKind.DEPLOY: ExitCodes.DEPLOY_ERROR,
}


def exit_code_for(error: NaetherError) -> int:
    return _EXIT_BY_KIND.get(error.kind, ExitCodes.RESOLUTION_ERROR).value


def parse_properties(pairs: List[str]) -> Dict[str, str]:
    """Turn KEY=VALUE strings into a mapping.

    Raises:
        ValueError: when an entry has no '='.
    """
    properties = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Invalid property '{pair}', expected KEY=VALUE")
        properties[key.strip()] = value
    return properties


def _setup_logging(args: Any, config_level: Optional[str] = None) -> None:
    """Configure logging; CLI --loglevel beats the config file and environment."""
    configure_logging(getattr(args, "LOG_LEVEL", None) or config_level)
    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def build_naether(args: Any, config) -> Naether:
    """Facade configured from the config file first, then CLI arguments."""
    naether = Naether()
    apply_config(naether, config)
    if getattr(args, "LOCAL_REPO", None):
        naether.local_repo_path = args.LOCAL_REPO
    if getattr(args, "NO_CENTRAL", False):
        naether.clear_remote_repositories()
    for url in getattr(args, "REPOSITORIES", None) or []:
        naether.add_remote_repository_by_url(url)
    if getattr(args, "WORKERS", None):
        naether.resolver.download_workers = args.WORKERS
    return naether


def _resolve(naether: Naether, args: Any, config, download: bool) -> None:
    for notation in args.notations:
        naether.add_dependency(notation)
    if args.POM:
        naether.add_dependencies_from_pom(args.POM, args.SCOPES)
    if not naether.dependencies():
        raise ValueError("No dependencies given: pass notations or --pom")
    properties = dict(config.properties)
    properties.update(parse_properties(args.PROPERTIES))
    naether.resolve_dependencies(download_artifacts=download, properties=properties)


def run(args: Any) -> int:
    """Execute one parsed command and return its exit code."""
    config = load_config(getattr(args, "CONFIG", None))
    _setup_logging(args, config.log_level)
    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.command),
        )
    naether = build_naether(args, config)

    if args.command == "resolve":
        _resolve(naether, args, config, download=not args.NO_DOWNLOAD)
        resolved = naether.resolver.get_resolved_dependencies()
        if args.OUTPUT_FORMAT == "json":
            print(json.dumps([dependency_dict(d) for d in resolved], indent=2))
        else:
            for dependency in resolved:
                line = f"{dependency.coordinate} ({dependency.scope.value})"
                if dependency.resolved_file:
                    line += f" {dependency.resolved_file}"
                print(line)
    elif args.command == "classpath":
        _resolve(naether, args, config, download=True)
        print(naether.resolved_classpath() or "")
    elif args.command == "local-path":
        for path in naether.local_paths(args.notations):
            print(path)
    elif args.command == "install":
        for path in naether.install(args.notation, pom_path=args.POM, file_path=args.FILE):
            print(path)
    elif args.command == "deploy":
        password = args.PASSWORD or os.environ.get(Constants.ENV_DEPLOY_PASSWORD)
        uploaded = naether.deploy(args.notation, args.FILE, args.URL, args.POM, args.USERNAME, password)
        for relative in uploaded:
            print(relative)
    return ExitCodes.SUCCESS.value


def main(argv=None) -> None:
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(getattr(args, "LOG_LEVEL", None))
    try:
        code = run(args)
    except NaetherError as exc:
        logger.error("%s", exc.message, extra=extra_context(event="error", component="cli", outcome=exc.kind.value))
        code = exit_code_for(exc)
    except ValueError as exc:
        logger.error("%s", exc)
        code = ExitCodes.USAGE_ERROR.value
    except KeyboardInterrupt:
        logger.error("Interrupted")
        code = ExitCodes.RESOLUTION_ERROR.value
    sys.exit(code)


if __name__ == "__main__":
    main()

"""Argument parsing functionality for naether."""

import argparse


def _add_common(parser):
    """Options shared by every subcommand."""
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)
    parser.add_argument("--local-repo",
                        dest="LOCAL_REPO",
                        help="Local repository root (default: $M2_REPO or ~/.m2/repository)",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)


def _add_repositories(parser):
    parser.add_argument("-r", "--repository",
                        dest="REPOSITORIES",
                        help="Remote repository URL, tried after the configured ones (repeatable)",
                        action="append",
                        type=str,
                        default=[])
    parser.add_argument("--no-central",
                        dest="NO_CENTRAL",
                        help="Do not query the central repository",
                        action="store_true")


def _add_resolution(parser):
    _add_repositories(parser)
    parser.add_argument("notations",
                        metavar="NOTATION",
                        nargs="*",
                        help="Dependency as group:artifact[:type[:classifier]]:version")
    parser.add_argument("-p", "--pom",
                        dest="POM",
                        help="Add the dependencies declared in a project POM",
                        action="store",
                        type=str)
    parser.add_argument("-s", "--scope",
                        dest="SCOPES",
                        help="Only take POM dependencies in this scope (repeatable)",
                        action="append",
                        type=str.lower)
    parser.add_argument("-D", "--property",
                        dest="PROPERTIES",
                        help="User property KEY=VALUE for descriptor interpolation (repeatable)",
                        action="append",
                        type=str,
                        default=[])
    parser.add_argument("--workers",
                        dest="WORKERS",
                        help="Number of parallel downloads",
                        action="store",
                        type=int)


def build_parser():
    """Build the top-level parser with its subcommands."""
    parser = argparse.ArgumentParser(
        prog="naether",
        description="naether - Maven-style dependency resolution, install and deploy",
        add_help=True,
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    resolve = subparsers.add_parser("resolve", help="Resolve dependencies transitively")
    _add_common(resolve)
    _add_resolution(resolve)
    resolve.add_argument("--no-download",
                         dest="NO_DOWNLOAD",
                         help="Only compute the dependency list, do not fetch artifacts",
                         action="store_true")
    resolve.add_argument("-f", "--format",
                         dest="OUTPUT_FORMAT",
                         help="Output format (text or json)",
                         action="store",
                         type=str.lower,
                         choices=['text', 'json'],
                         default='text')

    classpath = subparsers.add_parser("classpath", help="Resolve and print the classpath")
    _add_common(classpath)
    _add_resolution(classpath)

    local_path = subparsers.add_parser("local-path", help="Print local repository paths for notations")
    _add_common(local_path)
    local_path.add_argument("notations", metavar="NOTATION", nargs="+")

    install = subparsers.add_parser("install", help="Install an artifact into the local repository")
    _add_common(install)
    install.add_argument("notation", metavar="NOTATION")
    install.add_argument("--file", dest="FILE", help="Binary to install", type=str)
    install.add_argument("--pom", dest="POM", help="Descriptor to install", type=str)

    deploy = subparsers.add_parser("deploy", help="Deploy an artifact to a remote repository")
    _add_common(deploy)
    deploy.add_argument("notation", metavar="NOTATION")
    deploy.add_argument("--url", dest="URL", help="Target repository URL", type=str, required=True)
    deploy.add_argument("--file", dest="FILE", help="Binary to deploy", type=str)
    deploy.add_argument("--pom", dest="POM", help="Descriptor to deploy", type=str)
    deploy.add_argument("--username", dest="USERNAME", type=str)
    deploy.add_argument("--password", dest="PASSWORD", type=str)

    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)

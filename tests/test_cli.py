"""Tests for argument parsing, config loading and the CLI entry point."""

import json
import os

import pytest

from args import parse_args
from cli_config import apply_config, find_config_file, load_config, parse_config
from cli_resolve import exit_code_for, main, parse_properties
from constants import ExitCodes
from errors import ConfigError, DeployError, MalformedNotationError
from naether import Naether


class TestArgs:
    """Subcommand parsing."""

    def test_resolve(self):
        args = parse_args(["resolve", "g:a:1", "g:b:1", "-r", "https://repo.example.com/", "-D", "jdk=17",
                           "--no-download", "--format", "JSON"])
        assert args.command == "resolve"
        assert args.notations == ["g:a:1", "g:b:1"]
        assert args.REPOSITORIES == ["https://repo.example.com/"]
        assert args.PROPERTIES == ["jdk=17"]
        assert args.NO_DOWNLOAD is True
        assert args.OUTPUT_FORMAT == "json"

    def test_install(self):
        args = parse_args(["install", "g:a:1", "--file", "a.jar", "--pom", "pom.xml", "--loglevel", "debug"])
        assert (args.notation, args.FILE, args.POM, args.LOG_LEVEL) == ("g:a:1", "a.jar", "pom.xml", "DEBUG")

    def test_deploy_requires_url(self):
        with pytest.raises(SystemExit):
            parse_args(["deploy", "g:a:1", "--file", "a.jar"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestConfig:
    """YAML and JSON config files."""

    def test_yaml(self, tmp_path):
        path = tmp_path / "naether.yml"
        path.write_text(
            "local_repository: /srv/m2\n"
            "clear_default_repositories: true\n"
            "repositories:\n"
            "  - url: https://repo.example.com/maven2/\n"
            "  - url: https://private.example.com/repo/\n"
            "    id: private\n"
            "    username: ci\n"
            "    password: secret\n"
            "properties:\n"
            "  jdk: 17\n"
            "download_workers: 8\n"
            "log_level: DEBUG\n",
            encoding="utf-8",
        )
        config = load_config(str(path))
        assert config.local_repository == "/srv/m2"
        assert config.clear_default_repositories is True
        assert [r.url for r in config.repositories] == [
            "https://repo.example.com/maven2/", "https://private.example.com/repo/",
        ]
        assert config.repositories[1].id == "private"
        assert config.properties == {"jdk": "17"}
        assert config.download_workers == 8
        assert config.log_level == "DEBUG"

    def test_json(self, tmp_path):
        path = tmp_path / "naether.json"
        path.write_text(json.dumps({"repositories": ["https://repo.example.com/"]}), encoding="utf-8")
        config = load_config(str(path))
        assert config.repositories[0].url == "https://repo.example.com/"

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(str(tmp_path / "absent.yml"))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("repositories: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_invalid_values(self):
        with pytest.raises(ConfigError):
            parse_config({"download_workers": "many"})
        with pytest.raises(ConfigError):
            parse_config({"repositories": [{"id": "no-url"}]})
        with pytest.raises(ConfigError):
            parse_config({"properties": ["a"]})

    def test_lookup_order(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("NAETHER_CONFIG", raising=False)
        assert find_config_file() is None
        (tmp_path / "naether.yml").write_text("{}", encoding="utf-8")
        assert find_config_file() == "naether.yml"
        monkeypatch.setenv("NAETHER_CONFIG", "/etc/naether.yml")
        assert find_config_file() == "/etc/naether.yml"
        assert find_config_file("explicit.yml") == "explicit.yml"

    def test_no_config_yields_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("NAETHER_CONFIG", raising=False)
        assert load_config().repositories == []

    def test_apply_config(self, tmp_path):
        config = parse_config({
            "local_repository": str(tmp_path / "repo"),
            "clear_default_repositories": True,
            "repositories": [
                {"url": "https://repo.example.com/maven2/"},
                {"url": "https://private.example.com/", "id": "private", "username": "ci", "password": "pw"},
            ],
            "download_workers": 2,
        })
        naether = Naether()
        apply_config(naether, config)
        assert naether.local_repo_path == str(tmp_path / "repo")
        repos = naether.registry.remote_repositories
        assert [r.id for r in repos] == ["repo.example.com-maven2", "private"]
        assert repos[1].auth.username == "ci"
        assert naether.resolver.download_workers == 2


class TestMain:
    """Entry point behavior and exit codes."""

    def test_local_path(self, tmp_path, capsys, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("NAETHER_CONFIG", raising=False)
        with pytest.raises(SystemExit) as excinfo:
            main(["local-path", "g.h:a:1", "--local-repo", str(tmp_path / "m2")])
        assert excinfo.value.code == 0
        assert capsys.readouterr().out.strip() == os.path.join(str(tmp_path / "m2"), "g", "h", "a", "1", "a-1.jar")

    def test_malformed_notation_exit_code(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("NAETHER_CONFIG", raising=False)
        with pytest.raises(SystemExit) as excinfo:
            main(["local-path", "broken", "--local-repo", str(tmp_path / "m2")])
        assert excinfo.value.code == ExitCodes.USAGE_ERROR.value

    def test_install_without_sources(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("NAETHER_CONFIG", raising=False)
        with pytest.raises(SystemExit) as excinfo:
            main(["install", "g:a:1", "--local-repo", str(tmp_path / "m2")])
        assert excinfo.value.code == ExitCodes.INSTALL_ERROR.value

    def test_resolve_from_file_repository(self, tmp_path, capsys, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("NAETHER_CONFIG", raising=False)
        jar = tmp_path / "a.jar"
        jar.write_bytes(b"a")
        remote = tmp_path / "remote"
        assert Naether(local_repo_path=str(tmp_path / "unused")).deploy(
            "g:a:1", str(jar), remote.as_uri(), pom_path=None
        )
        base = remote / "g" / "a" / "1"
        (base / "a-1.pom").write_text("<project/>", encoding="utf-8")

        with pytest.raises(SystemExit) as excinfo:
            main(["classpath", "g:a:1", "--no-central", "-r", remote.as_uri(),
                  "--local-repo", str(tmp_path / "m2")])

        assert excinfo.value.code == 0
        assert capsys.readouterr().out.strip() == os.path.join(str(tmp_path / "m2"), "g", "a", "1", "a-1.jar")

    def test_resolve_without_dependencies_is_usage_error(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("NAETHER_CONFIG", raising=False)
        with pytest.raises(SystemExit) as excinfo:
            main(["resolve", "--no-central", "--local-repo", str(tmp_path / "m2")])
        assert excinfo.value.code == ExitCodes.USAGE_ERROR.value

    def test_exit_code_mapping(self):
        assert exit_code_for(DeployError("x")) == ExitCodes.DEPLOY_ERROR.value
        assert exit_code_for(MalformedNotationError("x")) == ExitCodes.USAGE_ERROR.value


def test_parse_properties():
    assert parse_properties(["a=1", "b=x=y"]) == {"a": "1", "b": "x=y"}
    with pytest.raises(ValueError):
        parse_properties(["novalue"])

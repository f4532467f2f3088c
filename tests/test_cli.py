from unittest.mock import patch, MagicMock

from click.testing import CliRunner

from openai_shim.cli import main
from openai_shim.config import new_config
from openai_shim.errors import ConfigError, EmptyResponseError
from openai_shim.llm import Response, Usage


def _client_returning(content: str) -> MagicMock:
    client = MagicMock()
    client.completion.return_value = Response(
        content=content,
        usage=Usage(prompt_tokens=1, completion_tokens=2, total_tokens=3),
    )
    return client


def _resolved_config(mock_new):
    """Replay the options the CLI passed to new()."""
    return new_config(*mock_new.call_args[0])


class TestCliModels:
    def test_lists_known_models(self):
        result = CliRunner().invoke(main, ["models"])

        assert result.exit_code == 0
        assert "gpt-4-0613" in result.output
        assert "function-call" in result.output
        assert "gpt-3.5-turbo " in result.output
        assert "(default)" in result.output

    def test_marks_legacy_models(self):
        result = CliRunner().invoke(main, ["models"])
        line = next(l for l in result.output.splitlines() if l.startswith("davinci-002"))
        assert "completion" in line


class TestCliComplete:
    @patch("openai_shim.cli.new")
    def test_prints_answer(self, mock_new):
        mock_new.return_value = _client_returning("42")

        result = CliRunner().invoke(main, ["complete", "What is the answer?", "--token", "sk-cli"])

        assert result.exit_code == 0
        assert result.output.strip() == "42"
        mock_new.return_value.completion.assert_called_once_with("What is the answer?")
        mock_new.return_value.close.assert_called_once()

    @patch("openai_shim.cli.new")
    def test_flags_become_options(self, mock_new):
        mock_new.return_value = _client_returning("ok")

        result = CliRunner().invoke(main, [
            "complete", "hi",
            "--token", "sk-cli",
            "--model", "gpt-4",
            "--max-tokens", "10",
            "--temperature", "0.5",
            "--proxy", "http://proxy.local:3128",
            "--skip-verify",
            "-H", "X-Team=core",
            "-H", "X-Env=dev",
        ])

        assert result.exit_code == 0
        cfg = _resolved_config(mock_new)
        assert cfg.token == "sk-cli"
        assert cfg.model == "gpt-4"
        assert cfg.max_tokens == 10
        assert cfg.temperature == 0.5
        assert cfg.proxy_url == "http://proxy.local:3128"
        assert cfg.skip_verify is True
        assert cfg.headers == {"X-Team": "core", "X-Env": "dev"}

    @patch("openai_shim.cli.new")
    def test_precedence_env_file_flags(self, mock_new, tmp_path):
        mock_new.return_value = _client_returning("ok")
        config_file = tmp_path / "shim.yaml"
        config_file.write_text("model: gpt-4\nmax_tokens: 99\n", encoding="utf-8")

        result = CliRunner().invoke(
            main,
            ["complete", "hi", "--config", str(config_file), "--max-tokens", "7"],
            env={"OPENAI_API_KEY": "sk-env", "OPENAI_MODEL": "davinci"},
        )

        assert result.exit_code == 0
        cfg = _resolved_config(mock_new)
        assert cfg.token == "sk-env"
        assert cfg.model == "gpt-4"
        assert cfg.max_tokens == 7

    @patch("openai_shim.cli.new")
    def test_prompt_from_stdin(self, mock_new):
        mock_new.return_value = _client_returning("ok")

        result = CliRunner().invoke(main, ["complete", "--token", "t"], input="from stdin\n")

        assert result.exit_code == 0
        mock_new.return_value.completion.assert_called_once_with("from stdin\n")

    def test_empty_prompt(self):
        result = CliRunner().invoke(main, ["complete", "--token", "t"], input="   ")
        assert result.exit_code != 0
        assert "empty prompt" in result.output

    @patch("openai_shim.cli.new")
    def test_usage_flag(self, mock_new):
        mock_new.return_value = _client_returning("ok")

        result = CliRunner().invoke(main, ["complete", "hi", "--token", "t", "--usage"])

        assert result.exit_code == 0
        assert "prompt=1 completion=2 total=3" in result.output

    @patch("openai_shim.cli.new")
    def test_config_error_is_reported(self, mock_new):
        mock_new.side_effect = ConfigError("token: missing api token")

        result = CliRunner().invoke(main, ["complete", "hi"], env={"OPENAI_API_KEY": ""})

        assert result.exit_code == 1
        assert "missing api token" in result.output

    @patch("openai_shim.cli.new")
    def test_empty_response_is_reported(self, mock_new):
        mock_new.return_value.completion.side_effect = EmptyResponseError("empty response from provider")

        result = CliRunner().invoke(main, ["complete", "hi", "--token", "t"])

        assert result.exit_code == 1
        assert "empty response from provider" in result.output

    def test_bad_config_file_is_reported(self, tmp_path):
        config_file = tmp_path / "shim.yaml"
        config_file.write_text("retries: 3\n", encoding="utf-8")

        result = CliRunner().invoke(main, ["complete", "hi", "--token", "t", "--config", str(config_file)])

        assert result.exit_code == 1
        assert "unknown config keys" in result.output

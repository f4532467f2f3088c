"""CLI entry point for openai-shim."""

import logging
from pathlib import Path

import click

from openai_shim import config as cfg
from openai_shim.errors import ShimError
from openai_shim.llm import new
from openai_shim.models import DEFAULT_MODEL, MODEL_MAP, is_chat_model, supports_function_call


def _flag_options(
    token: str | None,
    org_id: str | None,
    base_url: str | None,
    timeout: float | None,
    proxy: str | None,
    socks: str | None,
    skip_verify: bool,
    model: str | None,
    max_tokens: int | None,
    temperature: float | None,
    provider: str | None,
    api_version: str | None,
    model_name: str | None,
    headers: tuple[str, ...],
) -> list[cfg.Option]:
    """Turn the command-line flags that were actually given into options."""
    opts = []
    pairs = [
        (token, cfg.with_token),
        (org_id, cfg.with_org_id),
        (base_url, cfg.with_base_url),
        (timeout, cfg.with_timeout),
        (proxy, cfg.with_proxy_url),
        (socks, cfg.with_socks_url),
        (model, cfg.with_model),
        (max_tokens, cfg.with_max_tokens),
        (temperature, cfg.with_temperature),
        (provider, cfg.with_provider),
        (api_version, cfg.with_api_version),
        (model_name, cfg.with_model_name),
    ]
    for value, option in pairs:
        if value is not None:
            opts.append(option(value))
    if skip_verify:
        opts.append(cfg.with_skip_verify(True))
    if headers:
        opts.append(cfg.with_headers(headers))
    return opts


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """openai-shim — send prompts to OpenAI or Azure OpenAI models."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")


@main.command()
def models():
    """List the known model names and what each supports."""
    width = max(len(name) for name in MODEL_MAP)
    for name, model_id in MODEL_MAP.items():
        features = ["chat" if is_chat_model(model_id) else "completion"]
        if supports_function_call(model_id):
            features.append("function-call")
        marker = " (default)" if name == DEFAULT_MODEL else ""
        click.echo(f"{name:<{width}}  {', '.join(features)}{marker}")


@main.command()
@click.argument("prompt", required=False)
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path), help="YAML config file.")
@click.option("--token", default=None, help="API token (default: $OPENAI_API_KEY).")
@click.option("--org-id", default=None, help="Organization ID.")
@click.option("--base-url", default=None, help="API base URL, or the Azure resource endpoint.")
@click.option("--timeout", default=None, type=float, help="Request timeout in seconds.")
@click.option("--proxy", default=None, help="HTTP proxy URL.")
@click.option("--socks", default=None, help="SOCKS5 proxy address (host:port).")
@click.option("--skip-verify", is_flag=True, help="Skip TLS certificate verification.")
@click.option("--model", default=None, help="Model name, see `openai-shim models`.")
@click.option("--max-tokens", default=None, type=int, help="Maximum tokens to generate.")
@click.option("--temperature", default=None, type=float, help="Sampling temperature.")
@click.option("--provider", default=None, type=click.Choice(["openai", "azure"]), help="API flavor.")
@click.option("--api-version", default=None, help="API version override.")
@click.option("--model-name", default=None, help="Azure deployment name.")
@click.option("-H", "--header", "headers", multiple=True, help="Extra header as Key=Value, repeatable.")
@click.option("--usage", "show_usage", is_flag=True, help="Print token usage after the answer.")
def complete(prompt: str | None, config_path: Path | None, show_usage: bool, **flags):
    """Complete PROMPT (read from stdin when omitted) and print the answer."""
    if prompt is None:
        prompt = click.get_text_stream("stdin").read()
    if not prompt.strip():
        raise click.UsageError("empty prompt")

    opts = cfg.options_from_env()
    try:
        if config_path:
            opts.extend(cfg.load_config_file(config_path))
        opts.extend(_flag_options(**flags))
        client = new(*opts)
        try:
            resp = client.completion(prompt)
        finally:
            client.close()
    except ShimError as e:
        raise click.ClickException(str(e)) from e

    click.echo(resp.content)
    if show_usage:
        u = resp.usage
        click.echo(
            f"tokens: prompt={u.prompt_tokens} completion={u.completion_tokens} total={u.total_tokens}",
            err=True,
        )

import click
from condbuild.config import load_config, save_config, get_config_path, get_default_config
import json


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("init")
@click.option("--path", "target", type=click.Path(dir_okay=False),
              help="Where to write (default: ~/.condbuild/config.json); .toml and .yaml also work")
def init_config(target):
    """Write the default configuration if no file exists yet."""
    config_path = click.format_filename(target) if target else str(get_config_path())
    try:
        with open(config_path):
            click.echo(f"Configuration already exists at {config_path}")
            return
    except FileNotFoundError:
        pass
    written = save_config(get_default_config(), config_path)
    click.echo(f"Default configuration written to {written}")


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSON")
@click.option("--path", is_flag=True, help="Show the config file path being used")
def show_config(pretty, path):
    """Show the current configuration with all merges applied.

    By default, outputs single-line JSON.
    Use --pretty for human-readable formatted output.
    Use --path to see which config file is being used.
    """
    if path:
        print(json.dumps({"config_path": str(get_config_path())}))
        return

    config = load_config()
    if config.get('github', {}).get('token'):
        config['github']['token'] = '***'

    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))

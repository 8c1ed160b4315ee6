"""Main CLI dispatcher for promptometry."""

import sys

import click


@click.group()
def cli() -> None:
    """Promptometry - evaluates how developers work with AI coding assistants.

    Hooks record prompts and edits; evaluate and analyze score them.
    """
    pass


@cli.command("hook-prompt", hidden=True)
def hook_prompt() -> None:
    """Internal command for processing prompt-submission hook events."""
    from promptometry.core.hook_handler import handle_prompt_hook

    sys.exit(handle_prompt_hook())


@cli.command("hook-edit", hidden=True)
def hook_edit() -> None:
    """Internal command for processing file-edit hook events."""
    from promptometry.core.hook_handler import handle_edit_hook

    sys.exit(handle_edit_hook())


@cli.command("hook-response", hidden=True)
def hook_response() -> None:
    """Internal command for recording an assistant response."""
    from promptometry.core.hook_handler import handle_response_hook

    sys.exit(handle_response_hook())


from promptometry.understanding.cli.commands import analyze, evaluate, list_conversations, results, watch

cli.add_command(evaluate)
cli.add_command(analyze)
cli.add_command(results)
cli.add_command(watch)
cli.add_command(list_conversations)


if __name__ == "__main__":
    cli()

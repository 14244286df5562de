"""Top-level Click group for the promptrun CLI."""

import shlex
import sys

import click

from promptrun.claude_runner import ClaudeRunner
from promptrun.command_builder import CommandBuilder
from promptrun.document import parse_document, read_document
from promptrun.errors import PromptError
from promptrun.invocation import load_prompt, prepare_invocation
from promptrun.prompt_resolver import DEFAULT_COMMANDS_DIR, list_prompts, resolve_prompt
from promptrun.requirements_validator import RequirementsValidator
from promptrun.run_opts import RunOpts
from promptrun.template_renderer import render_template
from promptrun.variables import assemble_variables


def _fail(error: PromptError):
    click.echo(f"Error: {error}", err=True)
    sys.exit(1)


@click.group()
@click.option("--commands-dir", envvar="PROMPTRUN_COMMANDS_DIR", default=DEFAULT_COMMANDS_DIR,
              show_default=True, help="Directory searched for prompts by name")
@click.option("--claude-bin", envvar="PROMPTRUN_CLAUDE_BIN", default="claude",
              show_default=True, help="Claude executable to invoke")
@click.pass_context
def main(ctx, commands_dir, claude_bin):
    """promptrun - run reusable prompt files through Claude."""
    ctx.ensure_object(dict)
    ctx.obj["commands_dir"] = commands_dir
    ctx.obj["claude_bin"] = claude_bin


def execute(opts: RunOpts, environment=None, runner_factory=ClaudeRunner) -> int:
    """Run the full pipeline for one prompt and return the exit code."""
    prompt = load_prompt(opts.name, opts.commands_dir)
    variables = assemble_variables(opts.variables_file, opts.json_variables, opts.assignments)
    invocation = prepare_invocation(
        prompt,
        variables,
        builder=CommandBuilder(claude_bin=opts.claude_bin),
        validator=RequirementsValidator(environment),
        verbose=opts.verbose,
        model=opts.model,
    )

    if opts.dry_run:
        click.echo(shlex.join(invocation.argv))
        return 0

    result = runner_factory(verbose=opts.verbose).run(invocation.argv)
    if result.is_error and result.result_text:
        click.echo(f"Error: {result.result_text}", err=True)
    return result.returncode


@main.command("run", context_settings={"ignore_unknown_options": True})
@click.argument("name")
@click.argument("assignments", nargs=-1, type=click.UNPROCESSED)
@click.option("--file", "variables_file", metavar="PATH",
              help="Read variables from a .json, .yaml or .yml file")
@click.option("--json", "json_variables", metavar="STRING",
              help="Read variables from an inline JSON object")
@click.option("--verbose", is_flag=True,
              help="Stream Claude's structured output as it runs")
@click.option("--dry-run", is_flag=True,
              help="Print the Claude command instead of running it")
@click.option("--model", metavar="MODEL",
              help="Model to use, overriding the prompt's model")
@click.pass_context
def run_cmd(ctx, **kwargs):
    """Run prompt NAME, binding KEY=VALUE variables (KEY=@path reads a file)."""
    opts = RunOpts(
        commands_dir=ctx.obj["commands_dir"],
        claude_bin=ctx.obj["claude_bin"],
        **kwargs,
    )
    try:
        returncode = execute(
            opts,
            environment=ctx.obj.get("environment"),
            runner_factory=ctx.obj.get("runner_factory", ClaudeRunner),
        )
    except PromptError as e:
        _fail(e)
    sys.exit(returncode)


@main.command("list")
@click.pass_context
def list_cmd(ctx):
    """List the prompts available in the commands directory."""
    prompts = list_prompts(ctx.obj["commands_dir"])
    if not prompts:
        return
    width = max(len(info.name) for info in prompts)
    for info in prompts:
        try:
            description = parse_document(read_document(info.path)).description
        except PromptError:
            description = None
        if description:
            click.echo(f"{info.name.ljust(width)}  {description}")
        else:
            click.echo(info.name)


@main.command("show")
@click.argument("name")
@click.pass_context
def show_cmd(ctx, name):
    """Describe prompt NAME: metadata, variables and requirements."""
    try:
        path = resolve_prompt(name, ctx.obj["commands_dir"])
        prompt = parse_document(read_document(path))
    except PromptError as e:
        _fail(e)
    click.echo(render_template(
        "prompt_help.j2",
        name=prompt.name or name,
        command=name,
        description=prompt.description,
        model=prompt.model,
        path=path,
        variables=sorted(prompt.required_variables()),
        requirements=prompt.requirements,
    ))

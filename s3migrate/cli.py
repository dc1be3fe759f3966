"""Command-line entry point for s3migrate."""

from __future__ import annotations

import argparse
import dataclasses
import getpass
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence, TextIO

from .config import Config
from .connection import S3Connection
from .credentials import Credentials, CredentialStore, redact
from .endpoints import SHORTHANDS, resolve_endpoint
from .exceptions import ConfigurationError, S3MigrateError
from .migrator import BucketMigrator
from .models import MigrationJob
from .progress import ProgressReporter
from .retry import RetryingExecutor
from .transfer import ObjectCopier

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"

FINAL_WARNING = (
    "! We're ready to migrate the bucket.\n"
    "  Any existing files at the same path in the new bucket as there are files in the old bucket "
    "WILL BE OVERWRITTEN!\n"
    "? This is your last chance: Perform the migration? This may incur large egress and ingress fees."
)


class Prompter:
    """Console questions and answers. Answers are never blank."""

    def __init__(
        self,
        input_func: Callable[[str], str] = input,
        secret_func: Callable[[str], str] = getpass.getpass,
        output: TextIO | None = None,
    ) -> None:
        self._input = input_func
        self._secret = secret_func
        self._output = output if output is not None else sys.stdout

    def say(self, message: str) -> None:
        print(message, file=self._output, flush=True)

    def ask(self, question: str, secret: bool = False) -> str:
        self.say(question)
        read = self._secret if secret else self._input
        while True:
            answer = read("> ").strip()
            if answer:
                return answer

    def ask_yes_no(self, question: str) -> bool:
        prompt = f"{question} (Y/N)"
        while True:
            answer = self.ask(prompt).lower()
            if answer in ("y", "yes"):
                return True
            if answer in ("n", "no"):
                return False
            prompt = "Please answer yes or no."

    def ask_endpoint(self, question: str) -> str:
        while True:
            answer = self.ask(
                f"? {question} (e.g. https://s3.amazonaws.com)\n"
                f"  You may also answer a shorthand service name. The supported ones are {', '.join(SHORTHANDS)}"
            )
            try:
                return resolve_endpoint(answer)
            except ConfigurationError as exc:
                self.say(f"! {exc}")


@dataclass(frozen=True)
class Plan:
    source_endpoint: str
    source_bucket: str
    destination_endpoint: str
    destination_bucket: str


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="s3migrate",
        description="Copy every object of one S3 bucket into another, keeping metadata, ACLs and storage classes.",
    )
    parser.add_argument("--from", dest="source", help="Source endpoint URL or shorthand")
    parser.add_argument("--from-bucket", dest="source_bucket", help="Source bucket name")
    parser.add_argument("--to", dest="destination", help="Destination endpoint URL or shorthand")
    parser.add_argument("--to-bucket", dest="destination_bucket", help="Destination bucket name")
    parser.add_argument("--credentials", type=Path, help="Path of the saved credentials JSON file")
    parser.add_argument("--workers", type=int, help="Number of objects copied in parallel")
    parser.add_argument("--page-size", type=int, help="Objects listed per page")
    parser.add_argument(
        "--max-attempts",
        type=int,
        help="Give up on an object after this many failed attempts (default: retry forever)",
    )
    parser.add_argument("-y", "--yes", action="store_true", help="Skip confirmations and use saved credentials")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every copied object")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> Config:
    """Environment configuration with command-line overrides applied.

    Raises:
        ConfigurationError: If a value is invalid.
    """
    config = Config.from_env()
    overrides = {}
    for option, name in (("workers", "max_workers"), ("page_size", "page_size")):
        value = getattr(args, option)
        if value is not None:
            if value <= 0:
                raise ConfigurationError(f"--{option.replace('_', '-')} must be positive, got {value}")
            overrides[name] = value
    if args.max_attempts is not None:
        overrides["max_attempts"] = args.max_attempts if args.max_attempts > 0 else None
    if args.credentials is not None:
        overrides["credentials_path"] = args.credentials.expanduser()
    return dataclasses.replace(config, **overrides)


def gather_plan(args: argparse.Namespace, prompter: Prompter) -> Plan | None:
    """Work out what to migrate, asking for whatever was not given on the command line.

    Returns:
        The confirmed plan, or None if the user rejected a plan given entirely
        as arguments.
    """
    given = (args.source, args.source_bucket, args.destination, args.destination_bucket)
    source_arg, source_bucket_arg, destination_arg, destination_bucket_arg = given
    while True:
        if source_arg:
            source = resolve_endpoint(source_arg)
        else:
            source = prompter.ask_endpoint("What S3 server are you migrating from?")
        prompter.say(f"< Using {source} as the source endpoint")
        source_bucket = source_bucket_arg or prompter.ask("? What's the name of the bucket you're migrating from?")

        if destination_arg:
            destination = resolve_endpoint(destination_arg)
        else:
            destination = prompter.ask_endpoint("What S3 server are you migrating to?")
        prompter.say(f"< Using {destination} as the destination endpoint")
        destination_bucket = destination_bucket_arg or prompter.ask(
            "? What's the name of the bucket you're migrating to?"
        )

        prompter.say("! Going to migrate...")
        prompter.say(f"    from: {source}/{source_bucket}")
        prompter.say(f"      to: {destination}/{destination_bucket}")
        if args.yes or prompter.ask_yes_no("? Does this look right?"):
            return Plan(source, source_bucket, destination, destination_bucket)
        if all(given):
            return None
        # Ask everything again, including what came from arguments.
        source_arg = source_bucket_arg = destination_arg = destination_bucket_arg = None


def resolve_credentials(
    prompter: Prompter,
    store: CredentialStore,
    endpoint: str,
    bucket: str,
    role: str,
    assume_yes: bool = False,
) -> Credentials:
    """Use saved credentials for ``endpoint`` when the user agrees, otherwise ask for new ones."""
    found = store.lookup(endpoint, bucket)
    if found is not None:
        credentials, scope = found
        target = f"{role} server and bucket" if scope == "bucket" else f"{role} server"
        if assume_yes or prompter.ask_yes_no(f"? Use saved credentials for {target}?"):
            prompter.say(f"< Using access key ID {redact(credentials.access_id)} for {role} server.")
            return credentials

    credentials = Credentials(
        prompter.ask(f"? What's the Access ID for the {role} server?"),
        prompter.ask(f"? What's the Access Key for the {role} server?", secret=True),
    )
    if prompter.ask_yes_no("? Would you like to save these credentials for later?"):
        store.add(endpoint, bucket, credentials)
        if not store.save():
            prompter.say("! Failed to save credentials")
    return credentials


def main(argv: Sequence[str] | None = None, prompter: Prompter | None = None) -> int:
    """Entry point for the ``s3migrate`` command.

    Returns:
        Process exit status: 0 on success or when the user backs out, 1 on
        errors or abandoned objects, 130 when interrupted.
    """
    args = parse_args(argv)
    logging.basicConfig(
        format=LOG_FORMAT,
        level=logging.DEBUG if args.verbose else logging.INFO,
        stream=sys.stderr,
        force=True,
    )
    prompter = prompter or Prompter()
    prompter.say("Welcome to s3migrate")

    try:
        config = build_config(args)
        plan = gather_plan(args, prompter)
        if plan is None:
            prompter.say("! Okay. Exiting.")
            return 0

        store = CredentialStore.load(config.credentials_path)
        source_credentials = resolve_credentials(
            prompter, store, plan.source_endpoint, plan.source_bucket, "source", assume_yes=args.yes
        )
        destination_credentials = resolve_credentials(
            prompter, store, plan.destination_endpoint, plan.destination_bucket, "destination", assume_yes=args.yes
        )

        if not args.yes and not prompter.ask_yes_no(FINAL_WARNING):
            prompter.say("! Okay. Exiting.")
            return 0

        job = MigrationJob(
            source=S3Connection.create(plan.source_endpoint, source_credentials, "source", config.region),
            destination=S3Connection.create(
                plan.destination_endpoint, destination_credentials, "destination", config.region
            ),
            source_bucket=plan.source_bucket,
            destination_bucket=plan.destination_bucket,
        )
        migrator = BucketMigrator(
            job,
            reporter=ProgressReporter(),
            executor=RetryingExecutor(
                ObjectCopier(job),
                initial_backoff=config.initial_backoff,
                max_backoff=config.max_backoff,
                max_attempts=config.max_attempts,
            ),
            max_workers=config.max_workers,
            page_size=config.page_size,
        )
        result = migrator.run()

    except KeyboardInterrupt:
        prompter.say("\n! Interrupted.")
        return 130
    except EOFError:
        prompter.say("\n! No more input. Exiting.")
        return 1
    except S3MigrateError as exc:
        logger.error("%s", exc)
        return 1
    except Exception:
        logger.exception("Unexpected error during migration")
        return 1

    if result.failed:
        failed_keys = [error.key for error in result.failed]
        prompter.say(f"! {len(result.failed)} object(s) could not be copied: {failed_keys}")
        return 1

    prompter.say(f"! All done. {result.copied} object(s) copied.")
    return 0


if __name__ == "__main__":
    sys.exit(main())

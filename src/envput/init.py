import os

from envput import prompt
from envput._output import output
from envput.config import NAME_PATTERN, Config, EnvironmentFile


def generate_encryption_key() -> str:
    return os.urandom(32).hex()


def validate_name(kind, taken=()):
    def validate(answer):
        if not answer:
            return f"{kind} is required"
        if not NAME_PATTERN.match(answer):
            return (
                f"{kind} can only contain letters, numbers, hyphens, "
                "and underscores"
            )
        if answer in taken:
            return f"{kind} must be unique"
        return None

    return validate


def required(kind):
    def validate(answer):
        if not answer:
            return f"{kind} is required"
        return None

    return validate


def validate_bucket_path(answer):
    if not answer:
        return "Bucket path is required"
    if not answer.startswith("/"):
        return "Bucket path must start with '/'"
    return None


def create_config(path) -> Config:
    """Interactively ask for all settings and write a new config file."""
    output.section("Project")
    project = prompt.ask(
        "Project name (used in S3 paths)",
        validate=validate_name("Project name"),
    )
    encryption_key = generate_encryption_key()
    output.step("init", "Generated secure encryption key")

    output.section("AWS")
    region = prompt.ask(
        "AWS Region", default="us-east-1", validate=required("Region")
    )
    bucket = prompt.ask("S3 Bucket name", validate=required("Bucket name"))
    bucket_path = prompt.ask(
        "S3 Bucket path (directory within bucket)",
        default="/",
        validate=validate_bucket_path,
    )
    output.line(
        "Leave the credentials empty to use your default AWS credentials."
    )
    access_key_id = prompt.ask("AWS Access Key ID", default="")
    secret_access_key = ""
    if access_key_id:
        secret_access_key = prompt.ask(
            "AWS Secret Access Key",
            validate=required("Secret Access Key"),
            secret=True,
        )

    output.section("Environment files")
    environments = []
    while True:
        name = prompt.ask(
            "Environment name (e.g. 'development', 'production')",
            validate=validate_name(
                "Environment name", [e.name for e in environments]
            ),
        )
        file = prompt.ask(
            "Local file path",
            default=f".env.{name}",
            validate=required("File path"),
        )
        environments.append(EnvironmentFile(name, file))
        if not prompt.confirm("Add another environment?", default=False):
            break

    config = Config(
        project=project,
        encryption_key=encryption_key,
        region=region,
        bucket=bucket,
        bucket_path=bucket_path,
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        environments=environments,
        path=path,
    )
    config.save()
    output.step("init", f"Configuration saved to {path}", green=True)
    output.line(
        f"Configuration created with {len(environments)} environment(s)."
    )
    output.line(f"Don't forget to add {path} to your .gitignore file.")
    output.warn("BACKUP YOUR ENCRYPTION KEY!")
    output.annotate(
        f"If you lose your {path} file, you will PERMANENTLY lose access\n"
        "to ALL your encrypted environment files in S3.\n"
        "Store this file securely in multiple locations!",
        yellow=True,
    )
    return config

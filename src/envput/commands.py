import os
import os.path
import tempfile
from typing import List, Optional, Tuple

from envput import (
    ConfigurationError,
    LocalFileEncodingError,
    LocalFileNotFoundError,
    ReportingException,
    prepare_error,
    prompt,
)
from envput._output import output
from envput.config import Config, EnvironmentFile
from envput.encryption import seal, unseal
from envput.init import create_config
from envput.storage import BlobStorage

SUCCESS = 0
FAILURE = 1


def init(config, **kw):
    """Create a new configuration file interactively."""
    if Config.exists(config):
        if not prompt.confirm(
            "Configuration file already exists. Overwrite?", default=False
        ):
            output.line("Initialization cancelled")
            return SUCCESS
    create_config(config)
    return SUCCESS


def list_environments(config, **kw):
    config = Config.load(config)
    output.section("Configured environments")
    if not config.environments:
        output.line("No environments configured.")
        return SUCCESS
    storage = config.storage()
    for number, environment in enumerate(config.environments, 1):
        output.line(f"{number}. {environment.name}", bold=True)
        output.tabular("File", environment.file)
        output.tabular(
            "S3 Path", storage.url(config.storage_key(environment.name))
        )
    return SUCCESS


def select_environment(
    config: Config, name: Optional[str] = None
) -> EnvironmentFile:
    if name:
        return config.get_environment(name)
    if not config.environments:
        raise ConfigurationError.from_context(
            "No environments configured. Run `envput init` to add some."
        )
    if len(config.environments) == 1:
        return config.environments[0]
    index = prompt.choose(
        "Select environment",
        [f"{e.name} ({e.file})" for e in config.environments],
    )
    return config.environments[index]


def upload_environment(
    config: Config, storage: BlobStorage, environment: EnvironmentFile
):
    key = config.storage_key(environment.name)
    output.step(environment.name, f"Encrypting {environment.path}")
    with open(environment.path, "rb") as f:
        data = f.read()
    # Downloads only restore UTF-8 text.
    try:
        cleartext = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise LocalFileEncodingError.from_context(environment.path, e)
    blob = seal(cleartext, config.encryption_key)
    output.step(environment.name, f"Uploading to {storage.url(key)}")
    storage.put(key, blob)
    output.step(environment.name, "Uploaded successfully", green=True)


def download_environment(
    config: Config, storage: BlobStorage, environment: EnvironmentFile
):
    key = config.storage_key(environment.name)
    output.step(environment.name, f"Downloading {storage.url(key)}")
    blob = storage.get(key)
    output.step(environment.name, "Decrypting")
    cleartext = unseal(blob, config.encryption_key)
    output.step(environment.name, f"Writing {environment.path}")
    write_atomic(environment.path, cleartext.encode("utf-8"))
    output.step(environment.name, "Downloaded successfully", green=True)


def write_atomic(path: str, content: bytes):
    """Replace `path` so it never holds partially written content."""
    directory = os.path.dirname(path) or "."
    fd, tmp_path = tempfile.mkstemp(
        prefix=".envput.", dir=directory, text=False
    )
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
        os.replace(tmp_path, path)
    except BaseException:
        os.unlink(tmp_path)
        raise


def report_failures(failures: List[Tuple[str, Exception]]):
    output.section("Failures", red=True)
    for name, exception in failures:
        output.line(f"{name}:", bold=True)
        if isinstance(exception, ReportingException):
            exception.report()
        else:
            output.error(
                prepare_error(exception),
                exc_info=(
                    type(exception),
                    exception,
                    exception.__traceback__,
                ),
            )


def _resolve_name(environment, environment_option, all_environments):
    # A positional name wins over --environment.
    name = environment or environment_option
    if all_environments and name:
        raise ConfigurationError.from_context(
            "Use either an environment name or --all, not both."
        )
    return name


def upload(
    config,
    environment=None,
    environment_option=None,
    all_environments=False,
    **kw,
):
    """Encrypt local environment files and upload them."""
    name = _resolve_name(environment, environment_option, all_environments)
    config = Config.load(config)
    storage = config.storage()

    if all_environments:
        return upload_all(config, storage)

    env = select_environment(config, name)
    if not os.path.exists(env.path):
        raise LocalFileNotFoundError.from_context(env.path)
    if storage.exists(config.storage_key(env.name)):
        if not prompt.confirm(
            f"Environment '{env.name}' already exists in S3. Overwrite?",
            default=False,
        ):
            output.line("Upload cancelled")
            return SUCCESS
    upload_environment(config, storage, env)
    return SUCCESS


def upload_all(config: Config, storage: BlobStorage):
    failures = []
    for env in config.environments:
        try:
            if not os.path.exists(env.path):
                raise LocalFileNotFoundError.from_context(env.path)
            key = config.storage_key(env.name)
            if storage.exists(key):
                output.step(
                    env.name,
                    f"Skipping, {storage.url(key)} already exists",
                    yellow=True,
                )
                continue
            upload_environment(config, storage, env)
        except Exception as e:
            output.step(env.name, "Upload failed", red=True)
            failures.append((env.name, e))
    if failures:
        report_failures(failures)
        return FAILURE
    return SUCCESS


def download(
    config,
    environment=None,
    environment_option=None,
    all_environments=False,
    **kw,
):
    """Download environment files and decrypt them locally."""
    name = _resolve_name(environment, environment_option, all_environments)
    config = Config.load(config)
    storage = config.storage()

    if all_environments:
        return download_all(config, storage)

    env = select_environment(config, name)
    if os.path.exists(env.path):
        if not prompt.confirm(
            f"Local file already exists: {env.path}. Overwrite?",
            default=False,
        ):
            output.line("Download cancelled")
            return SUCCESS
    download_environment(config, storage, env)
    return SUCCESS


def download_all(config: Config, storage: BlobStorage):
    failures = []
    for env in config.environments:
        try:
            if os.path.exists(env.path):
                output.step(
                    env.name,
                    f"Skipping, {env.path} already exists",
                    yellow=True,
                )
                continue
            download_environment(config, storage, env)
        except Exception as e:
            output.step(env.name, "Download failed", red=True)
            failures.append((env.name, e))
    if failures:
        report_failures(failures)
        return FAILURE
    return SUCCESS

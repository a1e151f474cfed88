import configparser
import os
import os.path
import re
from typing import List, Optional

from configupdater import ConfigUpdater

from envput import ConfigurationError, EnvironmentNotFoundError
from envput.storage import S3Storage

CONFIG_FILE = ".envputrc"
ENVIRONMENT_PREFIX = "environment:"
NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")

NEW_FILE_TEMPLATE = """\
# envput configuration. Keep this file out of version control: whoever has
# the encryption key can read every environment stored for this project.

[envput]
project =
encryption_key =

[aws]
region =
bucket =
bucket_path =
# Leave the credentials empty to use the default AWS credential chain.
access_key_id =
secret_access_key =
"""


class EnvironmentFile(object):
    """A named environment and the local file holding its variables."""

    def __init__(self, name: str, file: str):
        self.name = name
        self.file = file

    @property
    def path(self) -> str:
        return os.path.abspath(self.file)

    def __eq__(self, other):
        if not isinstance(other, EnvironmentFile):
            return NotImplemented
        return (self.name, self.file) == (other.name, other.file)

    def __repr__(self):
        return f"<EnvironmentFile {self.name} ({self.file})>"


class Config(object):
    """Project settings as stored in the `.envputrc` file."""

    def __init__(
        self,
        project: str,
        encryption_key: str,
        region: str,
        bucket: str,
        bucket_path: str,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        environments: Optional[List[EnvironmentFile]] = None,
        path: str = CONFIG_FILE,
    ):
        self.project = project
        self.encryption_key = encryption_key
        self.region = region
        self.bucket = bucket
        self.bucket_path = bucket_path
        self.access_key_id = access_key_id or None
        self.secret_access_key = secret_access_key or None
        self.environments = list(environments or [])
        self.path = path

    @staticmethod
    def exists(path: str = CONFIG_FILE) -> bool:
        return os.path.exists(path)

    @classmethod
    def load(cls, path: str = CONFIG_FILE) -> "Config":
        if not os.path.exists(path):
            raise ConfigurationError.from_context(
                f"Configuration file not found: {path}. "
                "Run `envput init` to create one."
            )
        updater = ConfigUpdater()
        try:
            updater.read(path, encoding="utf-8")
        except configparser.Error as e:
            raise ConfigurationError.from_context(
                f"Invalid configuration file {path}: {e}"
            )

        def get(section, option, required=True):
            if not updater.has_section(section):
                raise ConfigurationError.from_context(
                    f"Configuration must have an '{section}' section"
                )
            value = ""
            if updater.has_option(section, option):
                value = (updater.get(section, option).value or "").strip()
            if required and not value:
                raise ConfigurationError.from_context(
                    f"Configuration section '{section}' is missing "
                    f"required field: {option}"
                )
            return value

        def check_name(kind, name):
            if not NAME_PATTERN.match(name):
                raise ConfigurationError.from_context(
                    f"Invalid {kind} name '{name}': only letters, "
                    "numbers, hyphens, and underscores are allowed"
                )
            return name

        project = check_name("project", get("envput", "project"))

        environments = []
        for section in updater.sections():
            if not section.startswith(ENVIRONMENT_PREFIX):
                continue
            name = check_name(
                "environment", section[len(ENVIRONMENT_PREFIX) :].strip()
            )
            environments.append(EnvironmentFile(name, get(section, "file")))

        return cls(
            project=project,
            encryption_key=get("envput", "encryption_key"),
            region=get("aws", "region"),
            bucket=get("aws", "bucket"),
            bucket_path=get("aws", "bucket_path"),
            access_key_id=get("aws", "access_key_id", required=False),
            secret_access_key=get("aws", "secret_access_key", required=False),
            environments=environments,
            path=path,
        )

    def save(self):
        updater = ConfigUpdater()
        updater.read_string(NEW_FILE_TEMPLATE)
        updater.set("envput", "project", self.project)
        updater.set("envput", "encryption_key", self.encryption_key)
        updater.set("aws", "region", self.region)
        updater.set("aws", "bucket", self.bucket)
        updater.set("aws", "bucket_path", self.bucket_path)
        updater.set("aws", "access_key_id", self.access_key_id or "")
        updater.set("aws", "secret_access_key", self.secret_access_key or "")
        for environment in self.environments:
            section = ENVIRONMENT_PREFIX + environment.name
            updater.add_section(section)
            updater.set(section, "file", environment.file)
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(str(updater))

    @property
    def environment_names(self) -> List[str]:
        return [e.name for e in self.environments]

    def get_environment(self, name: str) -> EnvironmentFile:
        for environment in self.environments:
            if environment.name == name:
                return environment
        raise EnvironmentNotFoundError.from_context(
            name, self.environment_names
        )

    def storage_key(self, name: str) -> str:
        """Return the object key an environment is stored under.

        `bucket_path` is given with slashes on either side ("/", "/configs/")
        so they are stripped before joining.

        """
        prefix = self.bucket_path.strip().strip("/")
        parts = [prefix] if prefix else []
        parts.extend([self.project, name])
        return "/".join(parts)

    def storage(self) -> S3Storage:
        return S3Storage(
            bucket=self.bucket,
            region=self.region,
            access_key_id=self.access_key_id,
            secret_access_key=self.secret_access_key,
        )

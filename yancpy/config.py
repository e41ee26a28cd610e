import json
import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from yancpy.errors import ConfigError
from yancpy.numerics import Numerics


class Config:
    """Configuration file loader.

    The file is a JSON or YAML mapping. The ``numerics`` key is validated into
    a :class:`~yancpy.numerics.Numerics` instance; any other top-level keys are
    kept untouched in :attr:`config` for the caller.

    Example YAML::

        numerics:
          linalg:
            singular_tolerance: 1.0e-10
          scheduler:
            workers: 4
    """

    config: dict = {}

    def __init__(self, path_config: str | Path):
        if not isinstance(path_config, (str, Path)):
            raise ConfigError("The config file path needs to be a string or a path!")
        self.path_config = Path(path_config)
        self.file_type = self.path_config.suffix
        self.log = logging.getLogger(self.__class__.__module__)

        if not self.path_config.is_file():
            raise ConfigError(
                f"Could not read config file {self.path_config}. Check if the file exists."
            )
        match self.file_type:
            case ".json":
                with open(self.path_config) as data:
                    self.config = json.load(data)
            case ".yaml" | ".yml":
                with open(self.path_config) as data:
                    self.config = yaml.safe_load(data)
            case _:
                raise ConfigError(
                    "The provided config file needs to be a json or yaml file!"
                )
        if self.config is None:
            self.config = {}
        if not isinstance(self.config, dict):
            raise ConfigError(
                f"The config file {self.path_config} must contain a mapping at the top level."
            )

        self.__read()

    def __read(self):
        try:
            self.numerics = Numerics.model_validate(self.config.get("numerics") or {})
        except ValidationError as err:
            raise ConfigError(
                f"Invalid numerics section in {self.path_config}: {err}"
            ) from err
        self.log.info("Loaded configuration from %s", self.path_config)

    def export(self, output_path: str | Path) -> None:
        """Write the effective configuration (defaults filled in) to JSON or YAML."""
        output_path = Path(output_path)
        config = dict(self.config)
        config["numerics"] = self.numerics.model_dump()

        match output_path.suffix:
            case ".json":
                with open(output_path, "w") as outfile:
                    json.dump(config, outfile, indent=4)
            case ".yaml" | ".yml":
                with open(output_path, "w") as outfile:
                    yaml.safe_dump(config, outfile, default_flow_style=False)
            case _:
                raise ConfigError(
                    "The provided output file needs to be a json or yaml file!"
                )


def load_numerics(path_config: str | Path | None) -> Numerics:
    """Return the numerics from ``path_config``, or the defaults when ``None``."""
    if path_config is None:
        return Numerics()
    return Config(path_config).numerics

from dataclasses import dataclass
import zlib
import tomlkit
from tomlkit import TOMLDocument, table

# Functions to work with the repository config file (.sprig/config.toml).
# Utilizes https://github.com/sdispater/tomlkit to work with TOML data.
#
# The expected toml format is:
# --------------------------
# [core]
# compression_level = -1 #zlib level, -1 is the zlib default, otherwise 0 to 9
# --------------------------

DEFAULT_COMPRESSION_LEVEL = zlib.Z_DEFAULT_COMPRESSION

@dataclass
class RepoConfig:
    compression_level:int = DEFAULT_COMPRESSION_LEVEL

    def __post_init__(self):
        level = self.compression_level
        if isinstance(level, bool) or not isinstance(level, int):
            raise ValueError(f"core.compression_level must be an integer, not '{level}'.")
        if level != DEFAULT_COMPRESSION_LEVEL and not 0 <= level <= 9:
            raise ValueError(f"core.compression_level must be -1 or between 0 and 9, not {level}.")

def load_config(toml_file_path:str) -> RepoConfig:
    try:
        with open(toml_file_path, 'r') as f:
            return loads_config(f.read())
    except FileNotFoundError:
        return RepoConfig()

def loads_config(toml:str|TOMLDocument) -> RepoConfig:
    if(isinstance(toml, str)):
        doc = tomlkit.loads(toml)
    else:
        doc = toml
    core = doc.get("core", None)
    if core is None:
        return RepoConfig()
    # unwrap() turns tomlkit items into plain python values
    level = core.get("compression_level", DEFAULT_COMPRESSION_LEVEL)
    if hasattr(level, "unwrap"):
        level = level.unwrap()
    return RepoConfig(compression_level=level)

def dumps_config(config:RepoConfig) -> str:
    doc = tomlkit.document()
    core = table()
    core.add("compression_level", config.compression_level)
    core["compression_level"].comment("zlib level, -1 is the zlib default, otherwise 0 to 9")
    doc.add("core", core)
    return doc.as_string()

def write_default_config(toml_file_path:str) -> RepoConfig:
    config = RepoConfig()
    with open(toml_file_path, 'w') as f:
        f.write(dumps_config(config))
    return config

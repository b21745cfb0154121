""" Settings for storyscript.

Defaults live in storyscript/data/config.toml. A user toml file can be
merged over them with load_config, after which the module level Settings
reflects the result. Components read Settings when they are constructed,
so reload before building an engine.
"""

import re
import types
import importlib.resources
from typing import Dict, Optional, Any, List, TextIO, Union

import toml # type: ignore

VERB_RE = re.compile(r'^\w+$')

def merge(base:Dict[str, Any], override:Dict[str, Any], path:Optional[List[str]]=None) -> Dict[str, Any]:
    """ recursively merges override into base, in place

    Sections merge key by key. A setting present in both must keep its type,
    otherwise ValueError names the offending key.

    inspired by https://stackoverflow.com/a/51653724/553580
    """

    if path is None: path = []
    for key, value in override.items():
        key_path = path + [str(key)]
        if key not in base:
            base[key] = value
        elif isinstance(base[key], dict) and isinstance(value, dict):
            merge(base[key], value, key_path)
        elif base[key].__class__ == value.__class__:
            base[key] = value
        else:
            raise ValueError(f'Conflict at {".".join(key_path)}: expected {base[key].__class__.__name__}, got {value.__class__.__name__}')
    return base

def validate(config:Dict[str, Any]) -> None:
    """ sanity checks on settings where a bad value would only show up much
    later as odd story behavior """

    if not config["Runtime"]["START_LABEL"].strip():
        raise ValueError("Runtime.START_LABEL must not be empty")

    for key in ("MAX_SILENT_STEPS", "MAX_TRACE_NODES"):
        if config["Interpreter"][key] <= 0:
            raise ValueError(f'Interpreter.{key} must be positive')

    for verb in config["Lexer"]["COMMAND_VERBS"]:
        if not isinstance(verb, str) or not VERB_RE.match(verb):
            raise ValueError(f'Lexer.COMMAND_VERBS entry {verb!r} is not a single word')

    if config["Engine"]["FETCH_TIMEOUT"] <= 0:
        raise ValueError("Engine.FETCH_TIMEOUT must be positive")

def dict_to_simplenamespace(d:Dict[str, Any]) -> types.SimpleNamespace:
    return types.SimpleNamespace(**{
        key: dict_to_simplenamespace(value) if isinstance(value, dict) else value
        for key, value in d.items()
    })

def load_defaults() -> Dict[str, Any]:
    return toml.loads(importlib.resources.files("storyscript.data").joinpath("config.toml").read_text(encoding="utf-8"))

def load_config(config_file:Optional[Union[str, TextIO]]=None) -> types.SimpleNamespace:
    """ rebuilds Settings from the defaults plus an optional override, given
    as a path or an open toml file """

    config = load_defaults()
    if config_file:
        merge(config, toml.load(config_file))
    validate(config)

    global Settings
    Settings = dict_to_simplenamespace(config)

    return Settings

# it's ok to reload the config with a file elsewhere, but we start with the
# built-in config
Settings = load_config()

r"""
Flagparse definitions: flags, positional arguments and bound-variable slots.

Overview
- Definitions
  • Flag: named input triggered by one of its aliases (e.g., -h/--help), either
    presence-only (parses to True) or value-bearing (has_value=True).
  • Argument: positional input matched by declaration order against the tokens
    left over once flags are extracted; single, variadic (var_arg) or fixed-count.
  • Slot: mutable cell a flag writes its value into (bound variable).

- Configuration
  • Definitions are built from keyword options or from a configuration mapping
    (see Flag.configure / Argument.configure). Keys are accepted in snake_case or
    camelCase ("has_value" or "hasValue"); unknown keys are rejected.
  • Everything is validated at construction; definitions are read-only afterwards.

- Rendering
  • str(definition) is its usage fragment ("[--help|-h]", "<file>", "[<files> ...]").
  • render(styler) returns the same fragment as a styled rich Text.
  • describe(styler) returns the line shown by Parser.long_usage().

Metadata (sanitized on construction)
- Shared
  • name: non-empty string without whitespace ("=" is also rejected for flags,
    since "--name=value" splits on it).
  • required: bool.
  • default: any value (not validated), None when omitted.
  • help: Unset | str (long usage description), non-empty when provided.
- Flag only
  • alias: str | Iterable[str], every alias starts with "-" and has no "=" nor
    whitespace. "--{name}" is always the first alias; duplicates are dropped.
  • has_value: bool.
  • callback: callable taking the matched value and returning the value to store.
  • bound_variable: Slot receiving the stored value.
- Argument only
  • var_arg: bool, consumes every remaining token.
  • count: int (>= 1), consumes exactly that many tokens. Exclusive with var_arg.

Public API
- Classes: Flag, Argument, Slot
"""
import itertools
import re
from collections.abc import Iterable, Mapping

from rich.text import Text

from .utils import *


class Slot:
    """
    Mutable cell standing in for a bound variable.

    The parser writes a flag's final value (parsed or default) into the slot of
    that flag, so application code can keep a handle instead of querying the parser:

        verbose = Slot(False)
        parser.add_flag_var("verbose", verbose)
        parser.parse(["--verbose"])
        verbose.value  # True
    """
    __slots__ = ("value",)

    def __init__(self, value=None, /):
        self.value = value

    def get(self):
        return self.value

    def set(self, value, /):
        self.value = value
        return value

    def __repr__(self):
        return "slot(%r)" % (self.value,)

    def __rich_repr__(self):
        yield self.value


def _configure(cls, config, options, /):
    """
    Internal: merge a configuration mapping with keyword options.

    - config: Unset | Mapping[str, Any]; keyword options win over mapping entries.
    - keys are normalized from camelCase to snake_case ("hasValue" -> "has_value").
    - keys outside cls.__configurable__ raise TypeError.
    """
    if config is Unset:
        config = {}
    elif not isinstance(config, Mapping):
        raise TypeError(f"{cls.__typename__} configuration must be a mapping")

    metadata = {}
    for key, value in itertools.chain(config.items(), options.items()):
        if not isinstance(key, str):
            raise TypeError(f"{cls.__typename__} configuration keys must be strings")
        field = re.sub(r"(?<!^)(?=[A-Z])", r"_", key).lower()
        if field not in cls.__configurable__:
            raise TypeError(f"{cls.__typename__} got an unexpected option {key!r}")
        metadata[field] = value
    return metadata


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate the metadata shared by flags and arguments.

    Mutates metadata in place
    - name: stripped, non-empty, no whitespace (flags also forbid "=").
    - required: coerced to bool.
    - help: Unset -> None, otherwise a non-empty stripped string.

    Raises
    - TypeError: name or help is not a string.
    - ValueError: name or help is empty, or name has a forbidden character.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    elif not re.fullmatch(r"[^\s=]+" if issubclass(cls, Flag) else r"\S+", name):
        raise ValueError(f"{cls.__typename__} 'name' cannot contain whitespace or '='")
    metadata["name"] = name

    metadata["required"] = bool(metadata["required"])

    if not isinstance(help := metadata["help"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'help' must be a string")
    elif isinstance(help, str) and not (help := help.strip()):
        raise ValueError(f"{cls.__typename__} 'help' cannot be empty")
    metadata["help"] = coalesce(help)


def _sanitize_flag_metadata(cls, metadata, /):
    """
    Internal: validate and normalize metadata specific to flags.

    - alias: a single string is promoted to a one-item list; the synthesized
      "--{name}" alias always comes first; duplicates are dropped keeping order.
    - has_value: coerced to bool.
    - callback: Unset -> None, otherwise must be callable.
    - bound_variable: Unset -> None, otherwise must be a Slot (stored as 'slot').
    """
    if isinstance(aliases := metadata.pop("alias"), str):
        aliases = [aliases]
    elif not isinstance(aliases, Iterable):
        raise TypeError(f"{cls.__typename__} 'alias' must be a string or an iterable of strings")

    names = ["--" + metadata["name"]]
    for alias in aliases:
        if not isinstance(alias, str):
            raise TypeError(f"{cls.__typename__} 'alias' must be a string or an iterable of strings")
        elif not (alias := alias.strip()):
            raise ValueError(f"{cls.__typename__} aliases cannot be empty-strings")
        elif not re.fullmatch(r"-[^\s=]*", alias):
            raise ValueError(f"{cls.__typename__} aliases must start with '-' and cannot contain whitespace or '='")
        names.append(alias)
    metadata["aliases"] = tuple(dict.fromkeys(names))

    metadata["has_value"] = bool(metadata["has_value"])

    if not callable(callback := metadata["callback"]) and callback is not Unset:
        raise TypeError(f"{cls.__typename__} 'callback' must be callable")
    metadata["callback"] = coalesce(callback)

    if not isinstance(slot := metadata.pop("bound_variable"), Slot | Unset):
        raise TypeError(f"{cls.__typename__} 'bound_variable' must be a slot")
    metadata["slot"] = coalesce(slot)


def _sanitize_argument_metadata(cls, metadata, /):
    """
    Internal: validate and normalize metadata specific to positional arguments.

    - var_arg: coerced to bool.
    - count: Unset -> None, otherwise an integer >= 1 (bool is rejected).
    - var_arg and count cannot be combined.
    """
    metadata["var_arg"] = bool(metadata["var_arg"])

    if isinstance(count := metadata["count"], bool) or not isinstance(count, int | Unset):
        raise TypeError(f"{cls.__typename__} 'count' must be an integer")
    elif isinstance(count, int) and count < 1:
        raise ValueError(f"{cls.__typename__} 'count' must be a positive integer")
    elif count and metadata["var_arg"]:
        raise TypeError(f"{cls.__typename__} cannot be both 'var_arg' and 'count'")
    metadata["count"] = coalesce(count)


def _metavar(name, styler, /):
    return Text.assemble("<", (name, styler("metavar")), ">")


class Flag(metaclass=DefinitionType):
    """
    Named flag definition.

    A flag is triggered by any of its aliases. Presence-only flags parse to True;
    value-bearing flags take the inline value ("--name=value") or the next token
    ("--name value"). The optional callback transforms the matched value and its
    return value is what gets stored (and written to the slot, when bound).

    Properties
    - The names listed in __introspectable__ are read-only attributes; containers
      are handed out as fresh copies (aliases is a list).
    """

    __introspectable__ = (
        "name",
        "aliases",
        "has_value",
        "required",
        "default",
        "callback",
        "slot",
        "help",
    )

    __displayable__ = (
        "name",
        "aliases",
        "has_value",
        "required",
        "default",
    )

    __configurable__ = (
        "alias",
        "has_value",
        "default",
        "required",
        "bound_variable",
        "help",
        "callback",
    )

    def __new__(
            cls,
            name,
            /,
            alias=(),
            has_value=False,
            default=None,
            required=False,
            bound_variable=Unset,
            help=Unset,
            callback=Unset,
    ):
        """
        Construct a Flag definition.

        Parameters
        - name: str
          Canonical name; the flag is stored under it and "--{name}" is its first alias.
        - alias: str | Iterable[str]
          Extra aliases, e.g. "-h" or ("-h", "-?").
        - has_value: bool
          Consume a value ("--name=value" or "--name value").
        - default: Any
          Value stored when the flag is absent (not validated).
        - required: bool
          Absence makes Parser.parse() raise MissingFlagError.
        - bound_variable: Slot
          Cell that receives the stored value.
        - help: str
          Description shown by Parser.long_usage().
        - callback: Callable[[Any], Any]
          Transform applied to the matched value; its return value is stored.
        """
        metadata = {
            "name": name,
            "alias": alias,
            "has_value": has_value,
            "default": default,
            "required": required,
            "bound_variable": bound_variable,
            "help": help,
            "callback": callback,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_flag_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @classmethod
    def configure(cls, name, config=Unset, /, **options):
        """
        Build a Flag from a configuration mapping and/or keyword options.

            Flag.configure("output", {"alias": "-o", "hasValue": True}, help="target file")
        """
        return cls(name, **_configure(cls, config, options))

    def render(self, styler=plain, /):
        """
        Usage fragment: aliases joined by "|", "<name>" for value flags, brackets unless required.
        """
        fragment = Text("|").join(Text(alias, styler("flag-name")) for alias in self._aliases)
        if self._has_value:
            fragment.append(" ").append(_metavar(self._name, styler))
        if not self._required:
            fragment = Text.assemble("[", fragment, "]")
        return fragment

    def describe(self, styler=plain, /):
        """
        Long usage line: shortest aliases first, value placeholder, default and help.
        """
        aliases = sorted(self._aliases, key=lambda alias: (len(alias), alias))
        line = Text("  ").append(Text(", ").join(Text(alias, styler("flag-name")) for alias in aliases))
        if self._has_value:
            line.append(" ").append(_metavar(self._name, styler))
        if self._default is not None:
            line.append(" (default: ").append(repr(self._default), styler("default")).append(")")
        if self._help:
            line.append(": ").append(self._help, styler("help"))
        return line

    def __str__(self):
        return self.render().plain


class Argument(metaclass=DefinitionType):
    """
    Positional argument definition.

    Arguments are matched in declaration order against the tokens left over after
    flag extraction. A single argument takes one token, a var_arg argument takes
    every remaining token (as a list), a counted argument takes exactly 'count'
    tokens (as a list). Absent optional arguments get their default.
    """

    __introspectable__ = (
        "name",
        "var_arg",
        "count",
        "required",
        "default",
        "help",
    )

    __configurable__ = (
        "var_arg",
        "count",
        "default",
        "required",
        "help",
    )

    def __new__(
            cls,
            name,
            /,
            var_arg=False,
            count=Unset,
            default=None,
            required=False,
            help=Unset,
    ):
        metadata = {
            "name": name,
            "var_arg": var_arg,
            "count": count,
            "default": default,
            "required": required,
            "help": help,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_argument_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @classmethod
    def configure(cls, name, config=Unset, /, **options):
        """
        Build an Argument from a configuration mapping and/or keyword options.
        """
        return cls(name, **_configure(cls, config, options))

    def render(self, styler=plain, /):
        metavar = _metavar(self._name, styler)
        if self._var_arg:
            fragment = Text.assemble(metavar, " ...")
        elif self._count:
            fragment = Text(" ").join([metavar] * self._count)
        else:
            fragment = metavar
        if not self._required:
            fragment = Text.assemble("[", fragment, "]")
        return fragment

    def describe(self, styler=plain, /):
        line = Text("  ").append(self._name, styler("argument-name"))
        if self._required:
            line.append(" (required)", styler("required"))
        if self._help:
            line.append(": ").append(self._help, styler("help"))
        return line

    def __str__(self):
        return self.render().plain


__all__ = (
    # Classes (definitions)
    "Flag",
    "Argument",
    "Slot",
)

"""
Flagparse faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
- ParserException / ParserWarning: base types that carry message + options and
  know how to render themselves with rich.
- ParseError / ArgumentError: the two error kinds raised by Parser.parse().
- trigger(): central entry point to fire a fault (raise or warn).
- report(): render a fault to the console without raising, for calling programs.
- getdoc(): optional description lookup for a code from the host application.

Integration
- The parser builds faults with a title, a code, a hint and context (token, name)
  and hands them to trigger(); exceptions propagate to the caller, warnings go
  through the warnings machinery.
- The parser never prints. Calling programs decide: report(error) then exit, or
  print the usage text, or anything else.
"""
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping
    - flags (1111x)
      • UNKNOWN_FLAG, MISSING_FLAG_VALUE, MISSING_REQUIRED_FLAG
    - arguments (1112x)
      • MISSING_REQUIRED_ARGUMENT, NOT_ENOUGH_VALUES
    - warnings (1211x)
      • INLINE_FLAG_VALUE, ALIAS_OVERRIDE
    """
    # --- flag errors (11xxx) ---
    UNKNOWN_FLAG                = 11111
    MISSING_FLAG_VALUE          = 11112
    MISSING_REQUIRED_FLAG       = 11113

    # --- positional errors (11xxx) ---
    MISSING_REQUIRED_ARGUMENT   = 11121
    NOT_ENOUGH_VALUES           = 11122

    # --- warnings (12xxx) ---
    INLINE_FLAG_VALUE           = 12111
    ALIAS_OVERRIDE              = 12112

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette, title):
    main = __import__("__main__")
    options = fault.options
    colorful = options.get("colorful", True)

    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style])

    parser = options.get("parser")
    prog = getattr(main, "__prog__", parser.prog if parser is not None else "flagparse")
    code = options.get("code")

    header = Text.assemble(
        "[ ",
        text(prog, "prog-name"),
        " — ",
        text(code.normalize() if code is not None else "", "code"),
        " | ",
        text(options.get("title", type(fault).__name__).title(), title),
        " ]"
    )
    message = text(fault.message, title.replace("title", "message"))
    renders = [message]
    if hint := options.get("hint"):
        renders.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

    if options.get("fancy", False):
        return Panel(Group(*renders), title=header, title_align="left")
    return Group(header, *renders)


class ParserException(Exception):
    """
    base type of every error raised while parsing.

    carries a human message plus read-only options (title, code, hint and context
    such as the offending token or the missing name).
    """

    def __init__(self, message="", /, **options):
        assert isinstance(message, str)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    @property
    def hint(self):
        return self.options.get("hint")

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        }, "error-title")

    def __trigger__(self):
        raise self from None

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ParseError(ParserException):
    """
    a token that looks like a flag could not be parsed (carries the token).
    """

    @property
    def token(self):
        return self.options.get("token")


class ArgumentError(ParserException):
    """
    a required flag or positional argument is missing (carries its name).
    """

    @property
    def name(self):
        return self.options.get("name")


class UnknownFlagError(ParseError): ...
class MissingValueError(ParseError): ...
class MissingFlagError(ArgumentError): ...
class MissingArgumentError(ArgumentError): ...
class NotEnoughValuesError(ArgumentError): ...


class ParserWarning(Warning):
    """
    base type of non-fatal parser feedback, emitted through warnings.warn.
    """

    def __init__(self, message="", /, **options):
        assert isinstance(message, str)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",
            "warning-title": "bold #FFC2E0",
            "warning-message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        }, "warning-title")

    def __trigger__(self):
        warnings.warn(self, stacklevel=self.options.get("stacklevel", 4))

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class InlineValueWarning(ParserWarning): ...
class AliasOverrideWarning(ParserWarning): ...


def _check(fault, caller):
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("%s() argument must have a __trigger__ and __replace__ methods" % caller)


def trigger(fault, /, **options):
    """
    fire a fault with the given options merged in.

    contract
    - fault must provide __trigger__ and __replace__ (see base classes).
    - exceptions are raised, warnings are emitted via warnings.warn.
    """
    _check(fault, "trigger")
    fault.__replace__(**options).__trigger__()


def report(fault, /, *, console=Unset, **options):
    """
    render a fault on the console (stderr by default) without raising.

    this is the calling program's tool: the parser raises, the program catches,
    reports and decides how to exit.

        try:
            parser.parse()
        except ParserException as error:
            report(error)
            sys.exit(1)
    """
    _check(fault, "report")
    if options:
        fault = fault.__replace__(**options)
    coalesce(console, globals()["console"]).print(fault)


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "ParserException",
    "ParseError",
    "ArgumentError",
    "UnknownFlagError",
    "MissingValueError",
    "MissingFlagError",
    "MissingArgumentError",
    "NotEnoughValuesError",
    "ParserWarning",
    "InlineValueWarning",
    "AliasOverrideWarning",
    "FaultCode",
    "trigger",
    "report",
    "getdoc",
)

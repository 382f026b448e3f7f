"""
Flagparse parser: register flags and positional arguments, parse tokens, render usage.

What this module provides
- Parser: owns the flag alias map and the ordered positional arguments, runs the
  two-phase parsing algorithm and exposes the results:
  • registration: add_flag(), add_flag_var(), add_argument(), build().
  • parsing: parse() over sys.argv[1:], a shell-like string or a list of tokens.
  • lookup: get(), flag(), arg(), args(), count(), slice(), parser[name], name in parser.
  • usage: usage(), long_usage(), and a rich __rich__ hook for styled help.

Quick start
    from flagparse import Parser, ParserException, report

    parser = Parser("Says hello", "hello")
    parser.add_flag("shout", alias="-S", help="shout the greeting")
    parser.add_argument("name", required=True)

    try:
        parser.parse()
    except ParserException as error:
        report(error)
        print(parser.usage())
        raise SystemExit(1)

    message = "Hello %s!" % parser["name"]
    print(message.upper() if parser["shout"] else message)

Parsing phases
- flags: one left-to-right scan. Every token starting with "-" must be a known
  alias ("--name", "--name=value" or an extra alias like "-n"); value flags take
  the inline value or consume the next token. Then absent flags get their default
  (or raise when required).
- positionals: the leftover tokens, in their original order, are matched against
  the arguments in declaration order.

Faults
- ParseError (UnknownFlagError, MissingValueError) and ArgumentError
  (MissingFlagError, MissingArgumentError, NotEnoughValuesError) are raised out of
  parse(); the stores are left partially filled and must not be relied upon.
"""
import difflib
import os.path
import re
import shlex
import sys
from collections.abc import Iterable

from rich.text import Text

from .arguments import Flag, Argument, Slot
from .faults import *
from .utils import *


_palette = {
    "usage-label": "bold #00E6FF",
    "program-name": "bold #FF4D94",
    "flag-name": "bold #22C55E",
    "metavar": "bold #FFD600",
    "argument-name": "bold #FFD600",
    "required": "italic #F97316",
    "default": "#A3A3A3",
    "help": "#9CA3AF",
    "section-label": "bold #FFFFFF",
    "examples-label": "bold #22C55E",
    "example": "#E5E7EB",
    "description-section": "italic #A3A3A3",
}


class Parser(metaclass=DefinitionType):
    """
    Flag and positional argument parser.

    State
    - flags: alias -> Flag (several aliases point at the same definition).
    - arguments: Argument definitions in declaration order.
    - results: parsed flags by name, parsed positionals by name, leftover tokens.

    Metadata (presentational only)
    - name: program name shown in the usage line (see prog).
    - description: paragraph appended to the usage text.
    - examples: example invocations listed in the usage text.
    - colorful: style the rich rendering (__rich__); plain text otherwise.

    Re-running parse() overwrites the previous results; definitions are kept.
    """

    __introspectable__ = (
        "name",
        "description",
        "examples",
        "flags",
        "arguments",
        "colorful",
    )

    __displayable__ = (
        "name",
        "description",
        "examples",
        "colorful",
    )

    def __new__(cls, description=Unset, name=Unset, examples=(), *, colorful=True):
        """
        Construct an empty parser.

        Parameters
        - description: Unset | str
          Shown after the usage line (and after the examples).
        - name: Unset | str
          Program name; defaults to __prog__ in __main__, then to basename(sys.argv[0]).
        - examples: Iterable[str]
          Example invocations, one per line.
        - colorful: bool
          Style the rich rendering.
        """
        self = super().__new__(cls)
        self._flags = {}
        self._arguments = []
        self._parsed_flags = {}
        self._parsed_arguments = {}
        self._rest = []
        self._colorful = bool(colorful)
        self.set_description(description)
        self.set_name(name)
        self.set_examples(examples)
        return self

    @classmethod
    def build(cls, callback, /, *args, **kwargs):
        """
        Create a parser, hand it to callback for registration and return it.

            parser = Parser.build(lambda parser: parser.add_flag("help", alias="-h"))

        Extra arguments are forwarded to the Parser constructor.
        """
        if not callable(callback):
            raise TypeError("build() argument must be callable")
        parser = cls(*args, **kwargs)
        callback(parser)
        return parser

    @property
    def prog(self):
        """
        Effective program name: explicit name, __prog__ in __main__, or the script basename.
        """
        if self._name is not None:
            return self._name
        return getattr(__import__("__main__"), "__prog__", os.path.basename(sys.argv[0]) if sys.argv else "")

    def set_name(self, name, /):
        if not isinstance(name, str | Unset):
            raise TypeError("parser 'name' must be a string")
        elif isinstance(name, str) and not (name := name.strip()):
            raise ValueError("parser 'name' cannot be empty")
        self._name = coalesce(name)
        return self

    def set_description(self, description, /):
        if not isinstance(description, str | Unset):
            raise TypeError("parser 'description' must be a string")
        self._description = coalesce(description) or None
        return self

    def set_examples(self, examples, /):
        if isinstance(examples, str) or not isinstance(examples, Iterable):
            raise TypeError("parser 'examples' must be an iterable of strings")
        sanitized = []
        for example in examples:
            if not isinstance(example, str):
                raise TypeError("parser 'examples' must be an iterable of strings")
            sanitized.append(example)
        self._examples = tuple(sanitized)
        return self

    # ── Registration ──────────────────────────────────────────────────────────

    def add_flag(self, name, config=Unset, callback=Unset, /, **options):
        """
        Register a flag under "--{name}" and every extra alias.

        Parameters
        - name: str
        - config: Unset | Mapping
          Options as a mapping ("alias", "has_value"/"hasValue", "default", "required",
          "bound_variable"/"boundVariable", "help", "callback").
        - callback: Unset | Callable[[Any], Any]
          Value transform; its return value is stored.
        - **options: same keys as config; they win over the mapping.

        An alias already owned by another flag is taken over by this one and an
        AliasOverrideWarning is emitted.

        Returns the parser.
        """
        if callback is not Unset:
            options["callback"] = callback
        flag = Flag.configure(name, config, **options)

        for alias in flag.aliases:
            if (previous := self._flags.get(alias)) is not None and previous is not flag:
                trigger(AliasOverrideWarning(
                    "alias %r of flag %r is taken over by flag %r" % (alias, previous.name, flag.name),
                    title="alias override",
                    code=FaultCode.ALIAS_OVERRIDE,
                    hint="rename one of the aliases if both flags must stay reachable",
                    parser=self,
                    alias=alias,
                    docs=getdoc(FaultCode.ALIAS_OVERRIDE),
                ))
            self._flags[alias] = flag
        return self

    def add_flag_var(self, name, slot, config=Unset, /, **options):
        """
        Register a flag whose value is also written into the given Slot.

            verbose = Slot(False)
            parser.add_flag_var("verbose", verbose, alias="-v")

        Returns the parser.
        """
        if not isinstance(slot, Slot):
            raise TypeError("add_flag_var() second argument must be a slot")
        options["bound_variable"] = slot
        return self.add_flag(name, config, **options)

    add_flag_with_bound_variable = add_flag_var

    def add_argument(self, name, config=Unset, /, **options):
        """
        Register a positional argument after the ones already declared.

        Parameters
        - name: str
        - config: Unset | Mapping
          Options as a mapping ("var_arg"/"varArg", "count", "default", "required", "help").
        - **options: same keys as config; they win over the mapping.

        Returns the parser.
        """
        self._arguments.append(Argument.configure(name, config, **options))
        return self

    # ── Parsing ───────────────────────────────────────────────────────────────

    def _definitions(self):
        """
        Unique flag definitions still reachable through an alias, in registration order.
        """
        return list(dict.fromkeys(self._flags.values()))

    def _resolve_token(self, token, index):
        """
        Split a flag token into (alias, inline value) and find its definition.

        - "--name=value" with a non-empty value splits at the first "=".
        - anything else is looked up as-is (value is Unset).
        - an unknown alias raises UnknownFlagError with close-match suggestions.
        """
        if match := re.fullmatch(r"(?P<input>[^=]+)=(?P<value>.+)", token, re.DOTALL):
            input, value = match["input"], match["value"]
        else:
            input, value = token, Unset

        try:
            return self._flags[input], input, value
        except KeyError:
            suggestions = difflib.get_close_matches(input, self._flags.keys(), 5)
            try:
                hint = "did you mean %r? run with --help to see all flags" % suggestions[0]
            except IndexError:
                hint = "run with --help to see all flags"
            trigger(UnknownFlagError(
                "flag %r is not defined (token %d)" % (input, index + 1),
                title="unknown flag",
                code=FaultCode.UNKNOWN_FLAG,
                hint=hint,
                parser=self,
                token=token,
                index=index,
                suggestions=suggestions,
                docs=getdoc(FaultCode.UNKNOWN_FLAG),
            ))

    def _extract_flags(self, tokens):
        """
        Phase one: pull every flag (and its value) out of tokens; return the leftovers.
        """
        rest = []
        index = 0
        while index < len(tokens):
            token = tokens[index]
            index += 1

            if not token.startswith("-"):
                rest.append(token)
                continue

            flag, input, value = self._resolve_token(token, index - 1)

            if flag.has_value:
                if value is Unset:
                    if index >= len(tokens):
                        trigger(MissingValueError(
                            "flag %r expects a value but none was given" % input,
                            title="missing flag value",
                            code=FaultCode.MISSING_FLAG_VALUE,
                            hint="pass it as %s=<%s> or %s <%s>" % (input, flag.name, input, flag.name),
                            parser=self,
                            token=token,
                            index=index - 1,
                            docs=getdoc(FaultCode.MISSING_FLAG_VALUE),
                        ))
                    value = tokens[index]
                    index += 1
            else:
                if value is not Unset:
                    trigger(InlineValueWarning(
                        "flag %r does not take a value, %r is ignored" % (input, value),
                        title="inline value ignored",
                        code=FaultCode.INLINE_FLAG_VALUE,
                        hint="remove everything from '=' (for example: %s)" % input,
                        parser=self,
                        token=token,
                        index=index - 1,
                        docs=getdoc(FaultCode.INLINE_FLAG_VALUE),
                    ), stacklevel=5)
                value = True

            if flag.callback is not None:
                value = flag.callback(value)
            self._store(flag, value)

        for flag in self._definitions():
            if flag.name in self._parsed_flags:
                continue
            if flag.required:
                trigger(MissingFlagError(
                    "missing required flag %r" % flag.name,
                    title="missing required flag",
                    code=FaultCode.MISSING_REQUIRED_FLAG,
                    hint="pass %s" % flag,
                    parser=self,
                    name=flag.name,
                    docs=getdoc(FaultCode.MISSING_REQUIRED_FLAG),
                ))
            self._store(flag, flag._default)

        return rest

    def _store(self, flag, value):
        self._parsed_flags[flag.name] = value
        if flag.slot is not None:
            flag.slot.set(value)

    def _match_arguments(self, rest):
        """
        Phase two: match leftovers against the arguments in declaration order.
        """
        cursor = 0
        for argument in self._arguments:
            available = len(rest) - cursor
            needed = argument.count or 1

            if argument.required and available < needed:
                trigger(MissingArgumentError(
                    "missing required argument %r" % argument.name,
                    title="missing required argument",
                    code=FaultCode.MISSING_REQUIRED_ARGUMENT,
                    hint="usage: %s" % self.usage().partition("\n")[0].removeprefix("Usage: "),
                    parser=self,
                    name=argument.name,
                    docs=getdoc(FaultCode.MISSING_REQUIRED_ARGUMENT),
                ))

            if available <= 0:
                value = argument._default
            elif argument.var_arg:
                value = rest[cursor:]
                cursor = len(rest)
            elif argument.count:
                if available < needed:
                    trigger(NotEnoughValuesError(
                        "argument %r expects %d values but %d were given" % (argument.name, needed, available),
                        title="not enough values",
                        code=FaultCode.NOT_ENOUGH_VALUES,
                        hint="pass exactly %d values for %s, or none at all" % (needed, argument.name),
                        parser=self,
                        name=argument.name,
                        docs=getdoc(FaultCode.NOT_ENOUGH_VALUES),
                    ))
                value = rest[cursor:cursor + needed]
                cursor += needed
            else:
                value = rest[cursor]
                cursor += 1

            self._parsed_arguments[argument.name] = value

    def parse(self, tokens=Unset, /):
        """
        Parse tokens into flags, leftovers and positional arguments.

        Parameters
        - tokens:
          • Unset: read sys.argv[1:].
          • str: shell-like string, split via shlex.split.
          • Iterable[str]: pre-tokenized sequence.

        Raises
        - TypeError: tokens is not a string or an iterable of strings.
        - ParseError: unknown flag, or value flag without a value.
        - ArgumentError: missing required flag or argument, incomplete counted argument.
        """
        if tokens is Unset:
            tokens = sys.argv[1:]
        elif isinstance(tokens, str):
            tokens = shlex.split(tokens)
        elif not isinstance(tokens, Iterable):
            raise TypeError("parse() argument must be a string or an iterable of strings")

        tokens = list(tokens)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("parse() argument must be a string or an iterable of strings")

        self._parsed_flags.clear()
        self._parsed_arguments.clear()
        self._rest.clear()
        self._rest = self._extract_flags(tokens)
        self._match_arguments(self._rest)

    # ── Lookup ────────────────────────────────────────────────────────────────

    def get(self, name, /):
        """
        Value of the flag named name when it is set, else of the positional named name.
        """
        if (value := self.flag(name)) is not None:
            return value
        return self.arg(name)

    def flag(self, name, /):
        return self._parsed_flags.get(name)

    def arg(self, key, /):
        """
        Positional value by name (str) or leftover token by position (int); None when absent.
        """
        if isinstance(key, str):
            return self._parsed_arguments.get(key)
        if isinstance(key, int) and not isinstance(key, bool) and 0 <= key < len(self._rest):
            return self._rest[key]
        return None

    def args(self):
        """
        Every leftover token, whether or not a declared argument claimed it.
        """
        return list(self._rest)

    def count(self):
        return len(self._rest)

    def slice(self, start, length=None, /):
        """
        Sub-range of the leftover tokens.

        A negative start counts from the end; a negative length stops that many
        tokens before the end; None takes everything from start.
        """
        if start < 0:
            start = max(len(self._rest) + start, 0)
        if length is None:
            return self._rest[start:]
        if length < 0:
            return self._rest[start:len(self._rest) + length]
        return self._rest[start:start + length]

    def __getitem__(self, name, /):
        return self.get(name)

    def __contains__(self, name, /):
        return self.get(name) is not None

    def __setitem__(self, name, value, /):
        raise TypeError("parser results are read-only")

    def __delitem__(self, name, /):
        raise TypeError("parser results are read-only")

    # ── Usage ─────────────────────────────────────────────────────────────────

    def _render(self, *, long=False, colorful=False):
        """
        Build the usage text as rich Text (unstyled when colorful is False).
        """
        style = styler(_palette, colorful)

        usage = Text.assemble(("Usage", style("usage-label")), ": ", (self.prog, style("program-name")))
        for definition in [*self._definitions(), *self._arguments]:
            usage.append(" ").append(definition.render(style))

        if self._examples:
            usage.append("\n\n").append("Examples", style("examples-label")).append("\n\n")
            usage.append(Text("\n").join(Text(example, style("example")) for example in self._examples))

        if self._description:
            usage.append("\n\n").append(self._description, style("description-section"))

        if not long:
            return usage

        if self._arguments:
            usage.append("\n\n").append("Arguments", style("section-label")).append(":\n\n")
            usage.append(Text("\n").join(argument.describe(style) for argument in self._arguments))

        if flags := self._definitions():
            usage.append("\n\n").append("Flags", style("section-label")).append(":\n\n")
            usage.append(Text("\n").join(flag.describe(style) for flag in flags))

        return usage

    def usage(self):
        """
        One-line synopsis, then the examples and the description when present.

            Usage: hello [--foo|-f] [--bar <bar>] <baz> [<boo>] [<bab> ...]

            Hello World
        """
        return self._render().plain

    def long_usage(self):
        """
        usage() followed by an "Arguments:" section and a "Flags:" section.
        """
        return self._render(long=True).plain

    def __rich__(self):
        return self._render(long=True, colorful=self._colorful)


__all__ = (
    "Parser",
)

"""
Parser behavioral tests (registration, parsing phases, lookups, usage).

Scope
- Validate flag extraction: aliases, inline values, spaced values, callbacks, slots, defaults.
- Validate positional matching: single, variadic and counted arguments, defaults, required.
- Validate lookups: get/flag/arg/args/count/slice and the container protocol.
- Validate usage and long usage text.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (Parser, Slot, faults).
"""

from __future__ import annotations

import sys
import unittest
from collections import namedtuple
from unittest import TestCase, mock

from flagparse import (
    Parser,
    Slot,
    ParseError,
    ArgumentError,
    UnknownFlagError,
    MissingValueError,
    MissingFlagError,
    MissingArgumentError,
    NotEnoughValuesError,
    InlineValueWarning,
    AliasOverrideWarning,
)


class TestFlags(TestCase):
    """Behavioral tests for the flag extraction phase."""

    def testShortAliasSetsFlag(self):
        parser = Parser()
        parser.add_flag("help", alias="-h", default=False)
        parser.parse(["-h"])

        self.assertIs(parser["help"], True)
        self.assertEqual(parser.args(), [])

    def testLongAliasSetsFlag(self):
        parser = Parser()
        parser.add_flag("help", alias="-h")
        parser.parse(["--help"])

        self.assertIs(parser.get("help"), True)

    def testValueWithEqualSign(self):
        parser = Parser()
        parser.add_flag("name", has_value=True)
        parser.parse(["--name=foo"])

        self.assertEqual(parser["name"], "foo")

    def testValueSplitsAtFirstEqualSign(self):
        parser = Parser()
        parser.add_flag("define", alias="-D", has_value=True)
        parser.parse(["-D=key=value"])

        self.assertEqual(parser["define"], "key=value")

    def testValueFromNextToken(self):
        parser = Parser()
        parser.add_flag("foo", has_value=True)
        parser.add_argument("bar")
        parser.parse(["--foo", "bar", "baz"])

        self.assertEqual(parser.get("foo"), "bar")
        self.assertEqual(parser.args(), ["baz"])
        self.assertEqual(parser.arg(0), "baz")
        self.assertIsNone(parser.arg(1))
        self.assertEqual(parser.get("bar"), "baz")

    def testValueTokenIsNeverReadAsFlag(self):
        parser = Parser()
        parser.add_flag("name", has_value=True)
        parser.add_flag("help")
        parser.parse(["--name", "--help"])

        self.assertEqual(parser["name"], "--help")
        self.assertIsNone(parser["help"])
        self.assertEqual(parser.args(), [])

    def testFlagsAfterArguments(self):
        parser = Parser()
        parser.add_flag("help")
        parser.parse(["foo", "bar", "--help"])

        self.assertEqual(parser.args(), ["foo", "bar"])
        self.assertIs(parser["help"], True)

    def testFlagsInterleavedWithArguments(self):
        parser = Parser()
        parser.add_flag("level", alias="-l", has_value=True)
        parser.add_flag("quiet", alias="-q")
        parser.parse(["a", "-l", "3", "b", "-q", "c"])

        self.assertEqual(parser["level"], "3")
        self.assertIs(parser["quiet"], True)
        self.assertEqual(parser.args(), ["a", "b", "c"])

    def testCallbackReturnValueIsStored(self):
        parser = Parser()
        parser.add_flag("list", {"has_value": True}, lambda value: value.split(","))
        parser.parse(["--list", "foo,bar,baz"])

        self.assertEqual(parser["list"], ["foo", "bar", "baz"])

    def testCallbackReceivesTrueForSwitches(self):
        received = []
        parser = Parser()
        parser.add_flag("verbose", callback=lambda value: received.append(value) or 3)
        parser.parse(["--verbose"])

        self.assertEqual(received, [True])
        self.assertEqual(parser["verbose"], 3)

    def testCallbackIsNotAppliedToDefaults(self):
        parser = Parser()
        parser.add_flag("jobs", has_value=True, default=1, callback=int)
        parser.parse([])

        self.assertEqual(parser["jobs"], 1)

    def testCallbackErrorsPropagate(self):
        parser = Parser()
        parser.add_flag("jobs", has_value=True, callback=int)

        with self.assertRaises(ValueError):
            parser.parse(["--jobs=many"])

    def testDefaultsForAbsentFlags(self):
        parser = Parser()
        parser.add_flag("level", has_value=True, default="info")
        parser.add_flag("quiet")
        parser.parse([])

        self.assertEqual(parser.flag("level"), "info")
        self.assertIsNone(parser.flag("quiet"))

    def testDefaultsKeepTheirType(self):
        Point = namedtuple("Point", ("x", "y"))
        origin = Slot()
        parser = Parser()
        parser.add_flag_var("origin", origin, has_value=True, default=Point(0, 0))
        parser.add_argument("range", default=(1, 2))
        parser.parse([])

        self.assertEqual(parser.flag("origin"), Point(0, 0))
        self.assertIsInstance(parser.flag("origin"), Point)
        self.assertIsInstance(origin.value, Point)
        self.assertEqual(parser.arg("range"), (1, 2))
        self.assertIsInstance(parser.arg("range"), tuple)

    def testRequiredFlagMissingRaises(self):
        parser = Parser()
        parser.add_flag("output", has_value=True, required=True)

        with self.assertRaises(ArgumentError) as context:
            parser.parse(["file"])
        self.assertIsInstance(context.exception, MissingFlagError)
        self.assertEqual(context.exception.name, "output")

    def testRequiredFlagPresent(self):
        parser = Parser()
        parser.add_flag("output", alias="-o", has_value=True, required=True)
        parser.parse(["-o", "out.txt"])

        self.assertEqual(parser["output"], "out.txt")

    def testUndefinedFlagRaises(self):
        parser = Parser()

        with self.assertRaises(ParseError) as context:
            parser.parse(["--foo", "-h"])
        self.assertIsInstance(context.exception, UnknownFlagError)
        self.assertEqual(context.exception.token, "--foo")

    def testUndefinedFlagSuggestsCloseMatches(self):
        parser = Parser()
        parser.add_flag("help", alias="-h")

        with self.assertRaises(UnknownFlagError) as context:
            parser.parse(["--hepl"])
        self.assertEqual(context.exception.options["suggestions"][0], "--help")
        self.assertIn("--help", context.exception.hint)

    def testEmptyInlineValueIsNotSplit(self):
        parser = Parser()
        parser.add_flag("name", has_value=True)

        with self.assertRaises(UnknownFlagError) as context:
            parser.parse(["--name="])
        self.assertEqual(context.exception.token, "--name=")

    def testLoneDashIsAFlagToken(self):
        parser = Parser()

        with self.assertRaises(UnknownFlagError):
            parser.parse(["-"])

    def testMissingValueAtEndRaises(self):
        parser = Parser()
        parser.add_flag("name", has_value=True)

        with self.assertRaises(ParseError) as context:
            parser.parse(["file", "--name"])
        self.assertIsInstance(context.exception, MissingValueError)
        self.assertEqual(context.exception.token, "--name")

    def testInlineValueOnSwitchWarns(self):
        parser = Parser()
        parser.add_flag("help")

        with self.assertWarns(InlineValueWarning):
            parser.parse(["--help=yes"])
        self.assertIs(parser["help"], True)

    def testAliasOverrideLaterWins(self):
        parser = Parser()
        parser.add_flag("help", alias="-h")

        with self.assertWarns(AliasOverrideWarning):
            parser.add_flag("host", alias="-h")

        parser.parse(["-h"])
        self.assertIs(parser["host"], True)
        self.assertIsNone(parser["help"])
        self.assertIs(parser.flags["-h"], parser.flags["--host"])

    def testCamelCaseConfiguration(self):
        parser = Parser()
        parser.add_flag("output", {"alias": ["-o"], "hasValue": True})
        parser.add_argument("files", {"varArg": True})
        parser.parse(["-o", "out", "a", "b"])

        self.assertEqual(parser["output"], "out")
        self.assertEqual(parser["files"], ["a", "b"])

    def testUnknownConfigurationRaises(self):
        parser = Parser()

        with self.assertRaises(TypeError):
            parser.add_flag("output", {"bogus": True})
        with self.assertRaises(TypeError):
            parser.add_argument("file", has_value=True)


class TestSlots(TestCase):
    """Behavioral tests for bound variables."""

    def testSlotsReceiveParsedAndDefaultValues(self):
        foo = Slot()
        bar = Slot()
        baz = Slot()
        bab = Slot("")

        parser = Parser()
        parser.add_flag("foo", bound_variable=foo)
        parser.add_flag_var("bar", bar)
        parser.add_flag_var("baz", baz, default="foo")
        parser.add_flag_with_bound_variable("bab", bab)
        parser.parse(["--foo", "--bar", "--bab"])

        self.assertIs(foo.value, True)
        self.assertIs(bar.get(), True)
        self.assertIs(bab.value, True)
        self.assertEqual(baz.value, "foo")

    def testSlotReceivesCallbackResult(self):
        jobs = Slot(0)
        parser = Parser()
        parser.add_flag_var("jobs", jobs, {"has_value": True}, callback=int)
        parser.parse(["--jobs", "4"])

        self.assertEqual(jobs.value, 4)
        self.assertEqual(parser["jobs"], 4)

    def testFlagVarRequiresSlot(self):
        parser = Parser()

        with self.assertRaises(TypeError):
            parser.add_flag_var("jobs", [])


class TestArguments(TestCase):
    """Behavioral tests for the positional matching phase."""

    def testVariadicConsumesTail(self):
        parser = Parser()
        parser.add_flag("help")
        parser.add_argument("foo")
        parser.add_argument("bar", var_arg=True)
        parser.parse(["--help", "foo", "bar", "baz"])

        self.assertEqual(parser["foo"], "foo")
        self.assertEqual(parser["bar"], ["bar", "baz"])
        self.assertIs(parser["help"], True)

    def testDefinedArguments(self):
        parser = Parser()
        parser.add_flag("help")
        parser.add_argument("foo")
        parser.add_argument("bar")
        parser.parse(["--help", "foo", "bar", "baz"])

        self.assertEqual(parser.get("foo"), "foo")
        self.assertEqual(parser.get("bar"), "bar")
        self.assertEqual(parser.args(), ["foo", "bar", "baz"])

    def testArgumentDefaultValue(self):
        parser = Parser()
        parser.add_argument("foo", default="abc")
        parser.parse([])

        self.assertEqual(parser.arg("foo"), "abc")

    def testRequiredArgumentMissingRaises(self):
        parser = Parser()
        parser.add_argument("foo", required=True)

        with self.assertRaises(ArgumentError) as context:
            parser.parse([])
        self.assertIsInstance(context.exception, MissingArgumentError)
        self.assertEqual(context.exception.name, "foo")

    def testRequiredVariadicNeedsOneToken(self):
        parser = Parser()
        parser.add_argument("files", var_arg=True, required=True)

        with self.assertRaises(MissingArgumentError):
            parser.parse([])

        parser.parse(["a"])
        self.assertEqual(parser["files"], ["a"])

    def testSecondVariadicFindsNothing(self):
        parser = Parser()
        parser.add_argument("first", var_arg=True)
        parser.add_argument("second", var_arg=True, default=[])
        parser.parse(["x", "y"])

        self.assertEqual(parser["first"], ["x", "y"])
        self.assertEqual(parser["second"], [])

    def testCountedArgument(self):
        parser = Parser()
        parser.add_argument("pair", count=2)
        parser.add_argument("rest", var_arg=True)
        parser.parse(["a", "b", "c"])

        self.assertEqual(parser["pair"], ["a", "b"])
        self.assertEqual(parser["rest"], ["c"])

    def testCountedArgumentPartialRaises(self):
        parser = Parser()
        parser.add_argument("pair", count=2)

        with self.assertRaises(NotEnoughValuesError) as context:
            parser.parse(["a"])
        self.assertEqual(context.exception.name, "pair")

        parser.parse([])
        self.assertIsNone(parser["pair"])

    def testRequiredCountedArgumentShortRaises(self):
        parser = Parser()
        parser.add_argument("pair", count=2, required=True)

        with self.assertRaises(MissingArgumentError):
            parser.parse(["a"])

    def testVarArgAndCountAreExclusive(self):
        parser = Parser()

        with self.assertRaises(TypeError):
            parser.add_argument("pair", var_arg=True, count=2)


class TestLookups(TestCase):
    """Behavioral tests for result lookups and parse inputs."""

    def setUp(self):
        self.parser = Parser()
        self.parser.add_flag("help", alias="-h")
        self.parser.add_argument("first")

    def testContainerProtocol(self):
        self.parser.parse(["-h", "a"])

        self.assertIn("help", self.parser)
        self.assertIn("first", self.parser)
        self.assertNotIn("missing", self.parser)
        self.assertEqual(self.parser["first"], "a")
        with self.assertRaises(TypeError):
            self.parser["first"] = "b"
        with self.assertRaises(TypeError):
            del self.parser["first"]

    def testSliceAndCount(self):
        self.parser.parse(["a", "b", "c", "d"])

        self.assertEqual(self.parser.count(), 4)
        self.assertEqual(self.parser.slice(1), ["b", "c", "d"])
        self.assertEqual(self.parser.slice(1, 2), ["b", "c"])
        self.assertEqual(self.parser.slice(-2), ["c", "d"])
        self.assertEqual(self.parser.slice(0, -1), ["a", "b", "c"])
        self.assertEqual(self.parser.slice(-3, 2), ["b", "c"])

    def testArgsReturnsCopy(self):
        self.parser.parse(["a", "b"])
        self.parser.args().append("c")

        self.assertEqual(self.parser.args(), ["a", "b"])

    def testArgByPositionBounds(self):
        self.parser.parse(["a"])

        self.assertEqual(self.parser.arg(0), "a")
        self.assertIsNone(self.parser.arg(-1))
        self.assertIsNone(self.parser.arg(5))

    def testReparseOverwritesResults(self):
        self.parser.parse(["-h", "a"])
        self.parser.parse([])

        self.assertIsNone(self.parser["help"])
        self.assertIsNone(self.parser["first"])
        self.assertEqual(self.parser.args(), [])

    def testParseShellString(self):
        parser = Parser()
        parser.add_flag("name", has_value=True)
        parser.parse("--name 'hello world' file")

        self.assertEqual(parser["name"], "hello world")
        self.assertEqual(parser.args(), ["file"])

    def testParseDefaultsToProcessArguments(self):
        with mock.patch.object(sys, "argv", ["prog", "-h", "x"]):
            self.parser.parse()

        self.assertIs(self.parser["help"], True)
        self.assertEqual(self.parser["first"], "x")

    def testParseRejectsNonStrings(self):
        with self.assertRaises(TypeError):
            self.parser.parse(["a", 1])
        with self.assertRaises(TypeError):
            self.parser.parse(42)

    def testBuild(self):
        parser = Parser.build(lambda parser: parser.add_flag("help"))
        parser.parse(["--help"])

        self.assertIs(parser["help"], True)

    def testRegistrationChains(self):
        parser = Parser().add_flag("a").add_flag("b").add_argument("c")

        self.assertEqual(sorted(parser.flags), ["--a", "--b"])
        self.assertEqual([argument.name for argument in parser.arguments], ["c"])


class TestUsage(TestCase):
    """Behavioral tests for usage and long usage rendering."""

    def setUp(self):
        self.parser = Parser("Hello World", "hello")
        self.parser.add_flag("foo", alias="-f", help="Turn on fooness")
        self.parser.add_flag("bar", has_value=True)
        self.parser.add_argument("baz", required=True)
        self.parser.add_argument("boo", required=False)
        self.parser.add_argument("bab", var_arg=True, help="Bla bla bla")

    def testUsage(self):
        self.assertEqual(
            self.parser.usage(),
            "Usage: hello [--foo|-f] [--bar <bar>] <baz> [<boo>] [<bab> ...]\n"
            "\n"
            "Hello World"
        )

    def testLongUsage(self):
        self.assertEqual(
            self.parser.long_usage(),
            self.parser.usage() + "\n"
            "\n"
            "Arguments:\n"
            "\n"
            "  baz (required)\n"
            "  boo\n"
            "  bab: Bla bla bla\n"
            "\n"
            "Flags:\n"
            "\n"
            "  -f, --foo: Turn on fooness\n"
            "  --bar <bar>"
        )

    def testUsageIsIdempotent(self):
        self.assertEqual(self.parser.usage(), self.parser.usage())
        self.parser.parse(["baz"])
        self.assertEqual(self.parser.long_usage(), self.parser.long_usage())

    def testUsageWithExamples(self):
        parser = Parser("Says hello", "hello", ["hello World", "hello -S World"])
        parser.add_flag("shout", alias="-S")
        parser.add_argument("name", required=True)

        self.assertEqual(
            parser.usage(),
            "Usage: hello [--shout|-S] <name>\n"
            "\n"
            "Examples\n"
            "\n"
            "hello World\n"
            "hello -S World\n"
            "\n"
            "Says hello"
        )

    def testRequiredFlagIsNotBracketed(self):
        parser = Parser(name="cp")
        parser.add_flag("output", alias="-o", has_value=True, required=True)
        parser.add_argument("pair", count=2)

        self.assertEqual(parser.usage(), "Usage: cp --output|-o <output> [<pair> <pair>]")

    def testLongUsageShowsDefaults(self):
        parser = Parser(name="log")
        parser.add_flag("level", alias="-l", has_value=True, default="info", help="verbosity")

        self.assertEqual(
            parser.long_usage(),
            "Usage: log [--level|-l <level>]\n"
            "\n"
            "Flags:\n"
            "\n"
            "  -l, --level <level> (default: 'info'): verbosity"
        )

    def testSetters(self):
        parser = Parser().set_name("tool").set_description("Does things").set_examples(["tool x"])

        self.assertEqual(parser.name, "tool")
        self.assertEqual(parser.description, "Does things")
        self.assertEqual(parser.examples, ["tool x"])
        self.assertEqual(parser.usage(), "Usage: tool\n\nExamples\n\ntool x\n\nDoes things")

    def testProgramNameFromMain(self):
        with mock.patch.object(sys.modules["__main__"], "__prog__", "tool", create=True):
            self.assertTrue(Parser().usage().startswith("Usage: tool"))

    def testProgramNameFromScript(self):
        with mock.patch.object(sys, "argv", ["/usr/local/bin/thing", "x"]):
            if hasattr(sys.modules["__main__"], "__prog__"):
                self.skipTest("__main__ defines __prog__")
            self.assertEqual(Parser().usage(), "Usage: thing")

    def testRichRenderingMatchesLongUsage(self):
        self.assertEqual(self.parser.__rich__().plain, self.parser.long_usage())
        self.assertEqual(Parser(colorful=False).__rich__().plain, Parser().long_usage())


if __name__ == "__main__":
    unittest.main()

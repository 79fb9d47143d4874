"""
Coercion module behavioral tests (converter registry and value coercer).

Scope
- Validate Converters: standard entries, registration, defaults, resolution order.
- Validate Coercer.coerce: conversion, optional unwrapping, defaults for missing tokens,
  OptionValueError payload and cause, converter warnings.

Conventions
- Test method names follow CamelCase per project convention.
- A small stand-in context provides option_name and localizer; no Option is needed.
"""

import decimal
import enum
import pathlib
import unittest
import warnings
from typing import Optional
from unittest import TestCase

from protopt import (
    CONVERSION_TEMPLATE,
    Converters,
    Coercer,
    coercer,
    typename,
    unwrap,
    FaultCode,
    OptionValueError,
    OptionValueWarning,
)


class Context:
    def __init__(self, option_name="--count", localizer=str):
        self.option_name = option_name
        self.localizer = localizer


class Color(enum.Enum):
    RED = "r"
    GREEN = "g"


class TestUnwrap(TestCase):
    """Behavioral tests for optional-wrapper resolution and type names."""

    def testPlainTypeIsUnchanged(self):
        self.assertEqual(unwrap(int), (int, False))

    def testOptionalIsUnwrapped(self):
        self.assertEqual(unwrap(Optional[int]), (int, True))
        self.assertEqual(unwrap(int | None), (int, True))
        self.assertEqual(unwrap(None | float), (float, True))

    def testWiderUnionIsUnchanged(self):
        target = int | str | None
        self.assertEqual(unwrap(target), (target, False))

    def testTypeName(self):
        self.assertEqual(typename(int), "int")
        self.assertEqual(typename(pathlib.Path), "Path")
        self.assertEqual(typename(list[int]), "list[int]")


class TestConverters(TestCase):
    """Behavioral tests for the converter registry."""

    def testStandardEntries(self):
        converters = Converters.standard()
        for target in (str, bool, int, float, complex, decimal.Decimal, pathlib.Path):
            with self.subTest(target=target.__name__):
                self.assertIn(target, converters)

    def testStandardDefaults(self):
        converters = Converters.standard()
        self.assertIs(converters.default(bool), False)
        self.assertEqual(converters.default(int), 0)
        self.assertEqual(converters.default(float), 0.0)
        self.assertIsNone(converters.default(str))
        self.assertIsNone(converters.default(pathlib.Path))

    def testRegisterAndDelete(self):
        converters = Converters()
        converters.register(int, lambda raw: int(raw, 16), default=-1)
        self.assertEqual(converters.resolve(int)("ff"), 255)
        self.assertEqual(converters.default(int), -1)
        del converters[int]
        self.assertNotIn(int, converters)
        self.assertIsNone(converters.default(int))

    def testNonCallableConverterRejected(self):
        with self.assertRaises(TypeError):
            Converters()[int] = "int"

    def testInitialMapping(self):
        converters = Converters({int: int, float: float})
        self.assertEqual(len(converters), 2)
        self.assertEqual(set(converters), {int, float})

    def testEnumResolvedByNameThenValue(self):
        parse = Converters().resolve(Color)
        self.assertIs(parse("RED"), Color.RED)
        self.assertIs(parse("g"), Color.GREEN)

    def testUnregisteredTypeIsCalled(self):
        self.assertIs(Converters().resolve(decimal.Decimal), decimal.Decimal)


class TestCoercer(TestCase):
    """Behavioral tests for Coercer.coerce."""

    def testConvertsInteger(self):
        self.assertEqual(coercer.coerce("42", int, Context()), 42)

    def testConvertsString(self):
        self.assertEqual(coercer.coerce("42", str, Context()), "42")

    def testConvertsBooleanLiterals(self):
        for raw, expected in (("true", True), ("False", False), ("YES", True), ("off", False), ("1", True)):
            with self.subTest(raw=raw):
                self.assertIs(coercer.coerce(raw, bool, Context()), expected)

    def testConvertsThroughOptional(self):
        self.assertEqual(coercer.coerce("2.5", float | None, Context()), 2.5)

    def testConvertsEnum(self):
        self.assertIs(coercer.coerce("GREEN", Color, Context()), Color.GREEN)

    def testConvertsPath(self):
        self.assertEqual(coercer.coerce("a/b", pathlib.Path, Context()), pathlib.Path("a/b"))

    def testNoneYieldsDefault(self):
        self.assertEqual(coercer.coerce(None, int, Context()), 0)
        self.assertIs(coercer.coerce(None, bool, Context()), False)
        self.assertIsNone(coercer.coerce(None, str, Context()))
        self.assertIsNone(coercer.coerce(None, Optional[int], Context()))

    def testNoneSkipsConversion(self):
        calls = []
        converters = Converters()
        converters.register(int, lambda raw: calls.append(raw) or 1, default=7)
        self.assertEqual(Coercer(converters).coerce(None, int, Context()), 7)
        self.assertEqual(calls, [])

    def testFailureCarriesPayload(self):
        with self.assertRaises(OptionValueError) as caught:
            coercer.coerce("xyz", int, Context("--count"))
        fault = caught.exception
        self.assertEqual(fault.value, "xyz")
        self.assertEqual(fault.typename, "int")
        self.assertEqual(fault.option, "--count")
        self.assertIs(fault.options["code"], FaultCode.UNCONVERTIBLE_VALUE)
        self.assertEqual(fault.message, "could not convert string 'xyz' to type int for option '--count'")
        self.assertIsInstance(fault.__cause__, ValueError)

    def testFailureNamesUnwrappedType(self):
        with self.assertRaises(OptionValueError) as caught:
            coercer.coerce("xyz", Optional[int], Context())
        self.assertEqual(caught.exception.typename, "int")

    def testLocalizerReceivesFixedTemplate(self):
        seen = []

        def localizer(template):
            seen.append(template)
            return "conversion of {0} into {1} failed ({2})"

        with self.assertRaises(OptionValueError) as caught:
            coercer.coerce("xyz", int, Context("-n", localizer))
        self.assertEqual(seen, [CONVERSION_TEMPLATE])
        self.assertEqual(caught.exception.message, "conversion of xyz into int failed (-n)")

    def testUnresolvableTargetIsTypeError(self):
        with self.assertRaises(TypeError) as caught:
            coercer.coerce("3", "int", Context("-n"))
        self.assertNotIsInstance(caught.exception, OptionValueError)

    def testInjectedConverterIsUsed(self):
        converters = Converters()
        converters.register(int, lambda raw: len(raw))
        self.assertEqual(Coercer(converters).coerce("abcd", int, Context()), 4)

    def testArbitraryConverterFailureIsWrapped(self):
        def explode(raw):
            raise RuntimeError("boom")

        converters = Converters()
        converters.register(str, explode)
        with self.assertRaises(OptionValueError) as caught:
            Coercer(converters).coerce("x", str, Context())
        self.assertIsInstance(caught.exception.__cause__, RuntimeError)

    def testConverterWarningIsReissued(self):
        def noisy(raw):
            warnings.warn("lossy conversion", UserWarning)
            return raw

        converters = Converters()
        converters.register(str, noisy)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            self.assertEqual(Coercer(converters).coerce("x", str, Context()), "x")
        issued = [warning.message for warning in caught if isinstance(warning.message, OptionValueWarning)]
        self.assertEqual(len(issued), 1)
        self.assertIn("lossy conversion", issued[0].message)
        self.assertIs(issued[0].options["code"], FaultCode.CONVERSION_WARNING)


if __name__ == "__main__":
    unittest.main()

"""
Test file for DBF field definitions.
Checks the validation rules applied when a field is built for writing.
"""

import unittest
from dbf_field import (
    DBFField, DBFDataType,
    build_field_spec, parse_field_spec,
    FIELD_TYPE_C, FIELD_TYPE_N, FIELD_TYPE_M
)


class TestDBFDataType(unittest.TestCase):
    """Test cases for the data type table."""

    def test_from_code(self):
        self.assertEqual(DBFDataType.from_code('C'), DBFDataType.CHARACTER)
        self.assertEqual(DBFDataType.from_code(b'N'), DBFDataType.NUMERIC)
        self.assertEqual(DBFDataType.from_code(ord('F')), DBFDataType.FLOATING_POINT)
        self.assertEqual(DBFDataType.from_code(FIELD_TYPE_M), DBFDataType.MEMO)
        self.assertEqual(DBFDataType.from_code('@'), DBFDataType.TIMESTAMP_DBASE7)

    def test_from_unknown_code(self):
        for code in ('Z', 0, b'\xff'):
            with self.subTest(code=code):
                with self.assertRaises(ValueError):
                    DBFDataType.from_code(code)

    def test_from_code_too_long(self):
        with self.assertRaises(ValueError):
            DBFDataType.from_code('CN')

    def test_bounds(self):
        self.assertEqual(DBFDataType.CHARACTER.char_code, 'C')
        self.assertEqual(DBFDataType.CHARACTER.min_size, 1)
        self.assertEqual(DBFDataType.CHARACTER.max_size, 254)
        self.assertEqual(DBFDataType.DATE.default_size, 8)
        self.assertEqual(DBFDataType.NUMERIC.max_size, 32)
        self.assertTrue(DBFDataType.LOGICAL.write_supported)
        self.assertFalse(DBFDataType.MEMO.write_supported)
        self.assertFalse(DBFDataType.UNKNOWN.write_supported)


class TestDBFField(unittest.TestCase):
    """Test cases for field validation."""

    def test_constructor(self):
        field = DBFField("SALARY", DBFDataType.NUMERIC, 10, 2)
        self.assertEqual(field.name, "SALARY")
        self.assertEqual(field.type, DBFDataType.NUMERIC)
        self.assertEqual(field.field_length, 10)
        self.assertEqual(field.decimal_count, 2)

    def test_new_field_has_zero_reserved_bytes(self):
        field = DBFField("ID", DBFDataType.CHARACTER, 4)
        self.assertEqual(field.reserv1, 0)
        self.assertEqual(field.reserv2, 0)
        self.assertEqual(field.work_area_id, 0)
        self.assertEqual(field.reserv3, 0)
        self.assertEqual(field.set_fields_flag, 0)
        self.assertEqual(field.reserv4, bytes(7))
        self.assertEqual(field.index_field_flag, 0)

    def test_invalid_names(self):
        field = DBFField()
        for name in (None, "", "ABCDEFGHIJK", "CAFÉ", "ñ"):
            with self.subTest(name=name):
                with self.assertRaises(ValueError):
                    field.name = name
        self.assertIsNone(field.name)

    def test_valid_names(self):
        field = DBFField()
        for name in ("A", "ABCDEFGHIJ", "FIELD_1"):
            field.name = name
            self.assertEqual(field.name, name)

    def test_unsupported_types(self):
        field = DBFField("NOTES")
        for data_type in (DBFDataType.MEMO, DBFDataType.UNKNOWN, DBFDataType.CURRENCY):
            with self.subTest(data_type=data_type):
                with self.assertRaises(ValueError):
                    field.type = data_type
        self.assertIsNone(field.type)

    def test_type_sets_default_size(self):
        field = DBFField("X")
        field.type = DBFDataType.DATE
        self.assertEqual(field.field_length, 8)
        field.type = DBFDataType.LOGICAL
        self.assertEqual(field.field_length, 1)

    def test_type_without_default_uses_min_size(self):
        field = DBFField("X", DBFDataType.NUMERIC)
        self.assertEqual(field.field_length, DBFDataType.NUMERIC.min_size)

    def test_type_change_checks_length(self):
        field = DBFField("X", DBFDataType.CHARACTER, 200)
        with self.assertRaises(ValueError):
            field.type = DBFDataType.NUMERIC
        self.assertEqual(field.type, DBFDataType.CHARACTER)
        self.assertEqual(field.field_length, 200)

        field = DBFField("X", DBFDataType.NUMERIC, 32, 4)
        with self.assertRaises(ValueError):
            field.type = DBFDataType.FLOATING_POINT
        self.assertEqual(field.type, DBFDataType.NUMERIC)
        self.assertEqual(field.decimal_count, 4)

        field = DBFField("X", DBFDataType.NUMERIC, 20, 4)
        field.type = DBFDataType.FLOATING_POINT
        self.assertEqual(field.field_length, 20)
        self.assertEqual(field.decimal_count, 4)

    def test_length_bounds(self):
        field = DBFField("X", DBFDataType.NUMERIC)
        for length in (0, 33, -1):
            with self.subTest(length=length):
                with self.assertRaises(ValueError):
                    field.field_length = length
        field.field_length = 32
        self.assertEqual(field.field_length, 32)

        field.type = DBFDataType.CHARACTER
        with self.assertRaises(ValueError):
            field.field_length = 255
        field.field_length = 254

        field.type = DBFDataType.DATE
        with self.assertRaises(ValueError):
            field.field_length = 10

    def test_length_requires_type(self):
        with self.assertRaises(ValueError):
            DBFField("X").field_length = 10

    def test_length_below_decimal_count(self):
        field = DBFField("X", DBFDataType.NUMERIC, 10, 4)
        with self.assertRaises(ValueError):
            field.field_length = 3
        self.assertEqual(field.field_length, 10)

    def test_decimal_count(self):
        field = DBFField("X", DBFDataType.NUMERIC, 5)
        with self.assertRaises(ValueError):
            field.decimal_count = -1
        with self.assertRaises(ValueError):
            field.decimal_count = 6
        field.decimal_count = 5
        self.assertEqual(field.decimal_count, 5)

    def test_decimal_count_on_non_numeric(self):
        field = DBFField("X", DBFDataType.CHARACTER, 10)
        with self.assertRaises(ValueError):
            field.decimal_count = 2
        field.decimal_count = 0
        self.assertEqual(field.decimal_count, 0)

    def test_type_change_clears_decimals(self):
        field = DBFField("X", DBFDataType.NUMERIC, 10, 2)
        field.type = DBFDataType.FLOATING_POINT
        self.assertEqual(field.decimal_count, 2)
        field.type = DBFDataType.CHARACTER
        self.assertEqual(field.decimal_count, 0)

    def test_equality(self):
        self.assertEqual(DBFField("A", DBFDataType.CHARACTER, 10),
                         DBFField("A", DBFDataType.CHARACTER, 10))
        self.assertNotEqual(DBFField("A", DBFDataType.CHARACTER, 10),
                            DBFField("A", DBFDataType.CHARACTER, 11))
        self.assertNotEqual(DBFField("A", DBFDataType.CHARACTER, 10), "A")

    def test_str(self):
        text = str(DBFField("NAME", DBFDataType.CHARACTER, 30))
        self.assertTrue(text.startswith("NAME|"))
        self.assertIn("(C)", text)
        self.assertIn("Length: 30", text)
        self.assertIn("DecimalCount: 0", text)


class TestDeprecatedAPI(unittest.TestCase):
    """Test cases for the byte-code compatibility methods."""

    def test_set_data_type(self):
        field = DBFField("X")
        with self.assertWarns(DeprecationWarning):
            field.set_data_type(FIELD_TYPE_N)
        self.assertEqual(field.type, DBFDataType.NUMERIC)

    def test_set_data_type_unsupported(self):
        field = DBFField("X")
        with self.assertWarns(DeprecationWarning):
            with self.assertRaises(ValueError):
                field.set_data_type(FIELD_TYPE_M)

    def test_get_data_type(self):
        field = DBFField("X", DBFDataType.CHARACTER, 10)
        with self.assertWarns(DeprecationWarning):
            self.assertEqual(field.get_data_type(), FIELD_TYPE_C)
        with self.assertWarns(DeprecationWarning):
            self.assertEqual(DBFField().get_data_type(), 0)

    def test_set_field_name(self):
        field = DBFField()
        with self.assertWarns(DeprecationWarning):
            field.set_field_name("LEGACY")
        self.assertEqual(field.name, "LEGACY")


class TestFieldSpec(unittest.TestCase):
    """Test cases for the 'C(30)' field specification strings."""

    def test_build(self):
        self.assertEqual(build_field_spec(DBFField("A", DBFDataType.CHARACTER, 30)), "C(30)")
        self.assertEqual(build_field_spec(DBFField("B", DBFDataType.NUMERIC, 10, 2)), "N(10,2)")
        self.assertEqual(build_field_spec(DBFField("C", DBFDataType.DATE)), "D(8)")

    def test_parse(self):
        self.assertEqual(parse_field_spec("C(30)"), (DBFDataType.CHARACTER, 30, 0))
        self.assertEqual(parse_field_spec(" n( 10 , 2 ) "), (DBFDataType.NUMERIC, 10, 2))

    def test_parse_invalid(self):
        for spec in ("", "C", "C()", "C(x)", "Z(10)", "N(10,)"):
            with self.subTest(spec=spec):
                with self.assertRaises(ValueError):
                    parse_field_spec(spec)


if __name__ == "__main__":
    unittest.main()

import unittest

from fwintegrity.common import validators
from fwintegrity.common.algorithms import Hash


class TestValidUUID(unittest.TestCase):
    def test_valid(self):
        self.assertTrue(validators.valid_uuid("8be4df61-93ca-11d2-aa0d-00e098032b8c"))
        self.assertTrue(validators.valid_uuid("D719B2CB-3D3A-4596-A3BC-DAD00E67656F"))

    def test_invalid(self):
        for value in [None, "", "8be4df61", "8be4df61-93ca-11d2-aa0d-00e098032b8z"]:
            self.assertFalse(validators.valid_uuid(value), msg=value)


class TestValidIdentifier(unittest.TestCase):
    def test_valid(self):
        for value in ["UEFI:BootOrder", "ACPI:SLIC", "UEFI:Boot00FE"]:
            self.assertTrue(validators.valid_identifier(value), msg=value)

    def test_invalid(self):
        for value in [None, "", "BootOrder", ":BootOrder", "UEFI:", "UEFI:a=b", "UEFI:a\nb"]:
            self.assertFalse(validators.valid_identifier(value), msg=value)


class TestValidDigest(unittest.TestCase):
    def test_valid(self):
        self.assertTrue(validators.valid_digest("0a1b"))
        self.assertTrue(validators.valid_digest(Hash.SHA256.hexdigest(b""), Hash.SHA256))

    def test_invalid(self):
        for value in [None, "", "0A1B", "xyz", "0x12", "12 "]:
            self.assertFalse(validators.valid_digest(value), msg=value)

    def test_wrong_size(self):
        self.assertFalse(validators.valid_digest(Hash.SHA1.hexdigest(b""), Hash.SHA256))


if __name__ == "__main__":
    unittest.main()

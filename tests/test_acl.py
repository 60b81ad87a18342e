# Created in August 2021
#
# Author: Azaria Zornberg
#
# Copyright 2021 - 2021 Azaria Zornberg
#
# This file is part of ms_sddl
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

import pytest

from ms_sddl.core.ace import ACE
from ms_sddl.core.acl import ACL
from ms_sddl.environment.security.security_descriptor_constants import (
    ACCESS_ALLOWED_ACE_TYPE,
    ACE_COUNT,
    ACL_REVISION,
    ACL_SIZE,
    ACL_TYPE,
    CONTROL,
    SE_DACL_AUTO_INHERITED,
    SE_DACL_DEFAULTED,
    SE_DACL_PRESENT,
    SE_DACL_PROTECTED,
    SE_SACL_AUTO_INHERIT_REQ,
    SE_SACL_AUTO_INHERITED,
    SE_SACL_PRESENT,
    SE_SACL_PROTECTED,
)
from ms_sddl.exceptions import (
    SddlParseException,
    SecurityDescriptorDecodeException,
    SecurityDescriptorEncodeException,
)

EMPTY_ACL_BYTES = b"\x02" \
                  b"\x00" \
                  b"\x08\x00" \
                  b"\x00\x00" \
                  b"\x00\x00"

THREE_ACES = "D:(A;;FA;;;SY)(D;;FR;;;WD)(A;;FX;;;BA)"


class TestACLString(object):

    def test_parse_empty_dacl(self):
        acl = ACL.from_sddl_string("D:")
        assert acl[ACL_REVISION] == 2
        assert acl[ACL_SIZE] == 8
        assert acl[ACE_COUNT] == 0
        assert acl[ACL_TYPE] == "D"
        assert acl[CONTROL] == SE_DACL_PRESENT
        assert acl.aces == []
        assert acl.to_sddl_string() == "D:"
        assert acl.get_data() == EMPTY_ACL_BYTES

    def test_parse_empty_sacl(self):
        acl = ACL.from_sddl_string("S:")
        assert acl[ACL_TYPE] == "S"
        assert acl[CONTROL] == SE_SACL_PRESENT
        assert acl.to_sddl_string() == "S:"

    def test_parse_aces_in_order(self):
        acl = ACL.from_sddl_string(THREE_ACES)
        assert [ace.to_sddl_string() for ace in acl.aces] == ["(A;;FA;;;SY)", "(D;;FR;;;WD)", "(A;;FX;;;BA)"]
        assert acl[ACE_COUNT] == 3
        assert acl[ACL_SIZE] == 8 + 20 + 20 + 24
        assert acl.to_sddl_string() == THREE_ACES

    def test_duplicate_aces_are_kept(self):
        acl = ACL.from_sddl_string("D:(A;;FA;;;SY)(A;;FA;;;SY)")
        assert acl[ACE_COUNT] == 2

    @pytest.mark.parametrize('acl_str, control, expected', [
        ("D:P", SE_DACL_PRESENT | SE_DACL_PROTECTED, "D:P"),
        ("D:PAI(A;;FA;;;SY)", SE_DACL_PRESENT | SE_DACL_PROTECTED | SE_DACL_AUTO_INHERITED, "D:PAI(A;;FA;;;SY)"),
        ("D:AIP", SE_DACL_PRESENT | SE_DACL_PROTECTED | SE_DACL_AUTO_INHERITED, "D:PAI"),
        ("D:R", SE_DACL_PRESENT | SE_DACL_DEFAULTED, "D:R"),
        ("D:NOIO", SE_DACL_PRESENT, "D:"),
        ("D:NOAI(A;;FA;;;SY)", SE_DACL_PRESENT | SE_DACL_AUTO_INHERITED, "D:AI(A;;FA;;;SY)"),
        ("S:PARAI", SE_SACL_PRESENT | SE_SACL_PROTECTED | SE_SACL_AUTO_INHERIT_REQ | SE_SACL_AUTO_INHERITED,
         "S:PAIAR"),
    ])
    def test_parse_flags(self, acl_str, control, expected):
        acl = ACL.from_sddl_string(acl_str)
        assert acl[CONTROL] == control
        assert acl.to_sddl_string() == expected

    @pytest.mark.parametrize('acl_str, message', [
        ("", "empty ACL string"),
        ("D", "invalid ACL string format: must start with 'D:' or 'S:'"),
        ("DX(A;;FA;;;SY)", "invalid ACL string format: must start with 'D:' or 'S:'"),
        ("X:", "invalid ACL type: must start with 'D:' or 'S:'"),
        ("D:Q", "error parsing flags: invalid flag: 'Q'"),
        ("D:A;;FA;;;SY)", "invalid ACL format: missing opening parenthesis"),
        ("D:(A;;FA;;;SY", "invalid ACE format: missing closing parenthesis"),
        ("D:(A;;FA;;;SY)x", "invalid ACE format: expected '(' but got 'x'"),
    ])
    def test_parse_fail(self, acl_str, message):
        with pytest.raises(SddlParseException) as exc:
            ACL.from_sddl_string(acl_str)
        assert exc.value.message == message

    def test_parse_fail_names_ace(self):
        with pytest.raises(SddlParseException) as exc:
            ACL.from_sddl_string("D:(A;;FA;;;SY)(A;;XYZ;;;SY)")
        assert exc.value.message == "error parsing ACE '(A;;XYZ;;;SY)': unknown access mask: XYZ"


class TestACLBinary(object):

    def test_round_trip(self):
        acl = ACL.from_sddl_string(THREE_ACES)
        data = acl.get_data()
        assert len(data) == acl[ACL_SIZE]
        parsed = ACL.from_bytes(data, "D", acl[CONTROL])
        assert parsed == acl
        assert parsed.to_sddl_string() == THREE_ACES

    def test_type_and_control_come_from_caller(self):
        acl = ACL.from_bytes(EMPTY_ACL_BYTES, "S", SE_SACL_PRESENT | SE_SACL_PROTECTED)
        assert acl[ACL_TYPE] == "S"
        assert acl.to_sddl_string() == "S:P"

    def test_parse_ignores_data_beyond_size(self):
        acl = ACL.from_bytes(EMPTY_ACL_BYTES + b"\x01\x02\x03")
        assert acl.get_data() == EMPTY_ACL_BYTES

    def test_parse_fail_too_short(self):
        with pytest.raises(SecurityDescriptorDecodeException):
            ACL.from_bytes(EMPTY_ACL_BYTES[:7])

    def test_parse_fail_size_exceeds_data(self):
        with pytest.raises(SecurityDescriptorDecodeException) as exc:
            ACL.from_bytes(b"\x02\x00\x10\x00\x00\x00\x00\x00")
        assert exc.value.message == "AclSize 16 exceeds available data length 8"

    def test_parse_fail_count_exceeds_aces(self):
        data = bytearray(ACL.from_sddl_string("D:(A;;FA;;;SY)").get_data())
        data[4] = 2
        with pytest.raises(SecurityDescriptorDecodeException) as exc:
            ACL.from_bytes(bytes(data))
        assert exc.value.message == "ACE 1 offset 28 exceeds AclSize 28"

    def test_parse_fail_names_ace(self):
        data = b"\x02\x00\x12\x00\x01\x00\x00\x00" + b"\x00" * 10
        with pytest.raises(SecurityDescriptorDecodeException) as exc:
            ACL.from_bytes(data)
        assert exc.value.message.startswith("error parsing ACE 0: ")

    def test_encode_fail_stale_count(self):
        acl = ACL.from_sddl_string(THREE_ACES)
        acl[ACE_COUNT] = 2
        with pytest.raises(SecurityDescriptorEncodeException) as exc:
            acl.get_data()
        assert exc.value.message == "ACE count mismatch: stored 2, actual 3"

    def test_encode_fail_stale_size(self):
        acl = ACL.from_sddl_string(THREE_ACES)
        acl.aces.pop()
        with pytest.raises(SecurityDescriptorEncodeException) as exc:
            acl.get_data()
        assert exc.value.message == "ACL size mismatch: stored 72, computed 48"

    def test_encode_fail_too_large(self):
        ace = ACE.from_sddl_string("(A;;FA;;;SY)")
        acl = ACL.create("D", [ace] * 3300)
        with pytest.raises(SecurityDescriptorEncodeException) as exc:
            acl.get_data()
        assert exc.value.message == "ACL size 66008 exceeds maximum of 65535"

    def test_encode_fail_names_ace(self):
        acl = ACL.from_sddl_string(THREE_ACES)
        acl.aces[1]["Mask"] = 1 << 32
        with pytest.raises(SecurityDescriptorEncodeException) as exc:
            acl.get_data()
        assert exc.value.message.startswith("error encoding ACE 1: ")


class TestACLHelpers(object):

    def test_create(self):
        acl = ACL.create("S")
        assert acl[CONTROL] == SE_SACL_PRESENT
        assert acl.get_data() == EMPTY_ACL_BYTES

    @pytest.mark.parametrize('acl_type', ["X", "d", ""])
    def test_create_fail_invalid_type(self, acl_type):
        with pytest.raises(SecurityDescriptorEncodeException) as exc:
            ACL.create(acl_type)
        assert exc.value.message.startswith("invalid ACL type: ")

    def test_append_and_prepend_keep_sizes(self):
        acl = ACL.from_sddl_string("D:(A;;FA;;;SY)")
        acl.append_ace(ACE.create(ACCESS_ALLOWED_ACE_TYPE, "BA", 0x120089))
        acl.prepend_ace(ACE.from_sddl_string("(D;;FA;;;WD)"))
        acl.append_aces([ACE.from_sddl_string("(A;;FX;;;BU)")])
        acl.prepend_aces([ACE.from_sddl_string("(A;;FW;;;AU)")])
        assert acl.to_sddl_string() == "D:(A;;FW;;;AU)(D;;FA;;;WD)(A;;FA;;;SY)(A;;FR;;;BA)(A;;FX;;;BU)"
        assert acl[ACE_COUNT] == 5
        assert ACL.from_bytes(acl.get_data(), "D", acl[CONTROL]) == acl

    def test_indented_string(self):
        rendered = ACL.from_sddl_string(THREE_ACES).to_indented_string()
        assert rendered.startswith("DACL:\n  Revision: 2\n  Size: 72\n  AceCount: 3\n  ACE:")

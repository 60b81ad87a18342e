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

from ms_sddl.environment.security.well_known_tables import (
    WELL_KNOWN_ACCESS_MASK_TO_ALIAS,
    access_mask_to_string,
    canonical_sid_for_alias,
    compose_access_mask,
    decompose_access_mask,
    parse_access_mask_string,
    sid_alias_for,
)
from ms_sddl.exceptions import SddlParseException


class TestSidAliases(object):

    def test_alias_for_known_sid(self):
        assert sid_alias_for("S-1-5-18") == "SY"
        assert sid_alias_for("S-1-0-0") == "NULL"

    def test_alias_for_unknown_sid(self):
        assert sid_alias_for("S-1-5-21-1-2-3-500") is None

    def test_canonical_for_alias(self):
        assert canonical_sid_for_alias("BA") == "S-1-5-32-544"
        assert canonical_sid_for_alias("ZZ") is None


class TestAccessMaskRendering(object):

    @pytest.mark.parametrize('mask, expected', [
        (0x001F01FF, "FA"),
        (0x00120089, "FR"),
        (0x00120116, "FW"),
        (0x001200A0, "FX"),
        (0x00000001, "CC"),
        (0x00000003, "CCDC"),
        (0x00000030, "RPWP"),
        (0xF0000000, "GAGXGWGR"),
        (0x000F01FF, "CCDCLCSWRPWPDTLOCRSDRCWDWO"),
        (0x00000000, "0x00000000"),
        (0x00000200, "0x00000200"),
        (0x00000201, "0x00000201"),
    ])
    def test_render(self, mask, expected):
        assert access_mask_to_string(mask) == expected

    def test_decompose(self):
        assert decompose_access_mask(0x00030001) == (["CC", "SD", "RC"], 0)
        assert decompose_access_mask(0x00000201) == (["CC"], 0x200)
        assert decompose_access_mask(0) == ([], 0)

    def test_compose(self):
        assert compose_access_mask(["CC", "DC"]) == (0x3, [])
        assert compose_access_mask(["CC", "ZZ", "DC", "QQ"]) == (0x3, ["ZZ", "QQ"])
        assert compose_access_mask([]) == (0, [])


class TestAccessMaskParsing(object):

    @pytest.mark.parametrize('alias, mask', [(alias, mask) for mask, alias in WELL_KNOWN_ACCESS_MASK_TO_ALIAS.items()])
    def test_parse_alias(self, alias, mask):
        assert parse_access_mask_string(alias) == mask

    @pytest.mark.parametrize('mask_str, expected', [
        ("0x10", 0x10),
        ("0xffffffff", 0xFFFFFFFF),
        ("0x00000000", 0),
        ("RPWP", 0x30),
        ("WPRP", 0x30),
        ("GA", 0x10000000),
    ])
    def test_parse(self, mask_str, expected):
        assert parse_access_mask_string(mask_str) == expected

    @pytest.mark.parametrize('mask_str, message', [
        ("0x", "invalid hexadecimal access mask: 0x"),
        ("0xZZ", "invalid hexadecimal access mask: 0xZZ"),
        ("0x100000000", "invalid hexadecimal access mask: 0x100000000"),
        ("0x-1", "invalid hexadecimal access mask: 0x-1"),
        ("", "unknown access mask: "),
        ("XYZ", "unknown access mask: XYZ"),
        ("CCZZ", "unknown access mask: CCZZ"),
        ("CCD", "unknown access mask: CCD"),
    ])
    def test_parse_fail(self, mask_str, message):
        with pytest.raises(SddlParseException) as exc:
            parse_access_mask_string(mask_str)
        assert exc.value.message == message

    @pytest.mark.parametrize('mask', [0, 1, 0x3, 0x200, 0x1F01FF, 0x000F01FF, 0xF0000000, 0xFFFFFFFF, 0x12345678])
    def test_rendered_masks_parse_back(self, mask):
        assert parse_access_mask_string(access_mask_to_string(mask)) == mask

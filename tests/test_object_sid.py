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

from ms_sddl.core.object_sid import ObjectSid
from ms_sddl.environment.security.security_descriptor_constants import (
    IDENTIFIER_AUTHORITY,
    REVISION,
    SUB_AUTHORITY,
    WellKnownSID,
)
from ms_sddl.environment.security.well_known_tables import WELL_KNOWN_SID_TO_ALIAS
from ms_sddl.exceptions import (
    InvalidAuthorityException,
    InvalidSidException,
    InvalidSidFormatException,
    InvalidSidRevisionException,
    InvalidSubAuthorityException,
    TooManySubAuthoritiesException,
)

LOCAL_SYSTEM_BYTES = b"\x01" \
                     b"\x01" \
                     b"\x00\x00\x00\x00\x00\x05" \
                     b"\x12\x00\x00\x00"

DOMAIN_SID = "S-1-5-21-3242954042-3778974373-1659123385-1104"
DOMAIN_SID_BYTES = b"\x01" \
                   b"\x05" \
                   b"\x00\x00\x00\x00\x00\x05" \
                   b"\x15\x00\x00\x00" \
                   b"\x3a\x8d\x4b\xc1" \
                   b"\xa5\x92\x3e\xe1" \
                   b"\xb9\x36\xe4\x62" \
                   b"\x50\x04\x00\x00"

SIXTEEN_SUB_AUTHORITIES = "S-1-5-21-1-2-3-4-5-6-7-8-9-10-11-12-13-14-15-16"


class TestObjectSidBinary(object):

    def test_parse_local_system(self):
        sid = ObjectSid.from_bytes(LOCAL_SYSTEM_BYTES)
        assert sid[REVISION] == 1
        assert sid[IDENTIFIER_AUTHORITY] == 5
        assert sid[SUB_AUTHORITY] == [18]
        assert sid.to_canonical_string_format() == "S-1-5-18"
        assert sid.to_sddl_string() == "SY"
        assert str(sid) == "SY"

    def test_parse_domain_sid(self):
        sid = ObjectSid.from_bytes(DOMAIN_SID_BYTES)
        assert sid.to_sddl_string() == DOMAIN_SID
        assert sid.sub_authorities == [21, 3242954042, 3778974373, 1659123385, 1104]

    def test_create_domain_sid(self):
        sid = ObjectSid.from_sddl_string(DOMAIN_SID)
        assert sid.get_data() == DOMAIN_SID_BYTES
        assert len(sid) == 28

    def test_parse_ignores_trailing_data(self):
        sid = ObjectSid.from_bytes(LOCAL_SYSTEM_BYTES + b"\xff\xff\xff\xff")
        assert sid.to_sddl_string() == "SY"

    def test_authority_is_big_endian(self):
        data = b"\x01\x00\x01\x02\x03\x04\x05\x06"
        sid = ObjectSid.from_bytes(data)
        assert sid[IDENTIFIER_AUTHORITY] == 0x010203040506
        assert sid[SUB_AUTHORITY] == []
        assert sid.get_data() == data

    def test_parse_fail_too_short(self):
        with pytest.raises(InvalidSidFormatException):
            ObjectSid.from_bytes(b"\x01\x01\x00\x00")

    def test_parse_fail_truncated_sub_authorities(self):
        with pytest.raises(InvalidSidFormatException) as exc:
            ObjectSid.from_bytes(b"\x01\x02\x00\x00\x00\x00\x00\x05\x12\x00\x00\x00")
        assert "need 16 bytes for 2 sub-authorities" in exc.value.message

    def test_parse_fail_too_many_sub_authorities(self):
        # the count is checked before the length
        with pytest.raises(TooManySubAuthoritiesException):
            ObjectSid.from_bytes(b"\x01\x10\x00\x00\x00\x00\x00\x05")

    def test_encode_fail_too_many_sub_authorities(self):
        sid = ObjectSid.from_sddl_string("S-1-5-21")
        sid[SUB_AUTHORITY] = list(range(16))
        with pytest.raises(TooManySubAuthoritiesException):
            sid.get_data()

    def test_encode_fail_authority_too_large(self):
        sid = ObjectSid()
        sid[IDENTIFIER_AUTHORITY] = 1 << 48
        with pytest.raises(InvalidAuthorityException):
            sid.get_data()

    def test_encode_fail_sub_authority_too_large(self):
        sid = ObjectSid()
        sid[IDENTIFIER_AUTHORITY] = 5
        sid[SUB_AUTHORITY] = [1 << 32]
        with pytest.raises(InvalidSubAuthorityException):
            sid.get_data()

    def test_encode_fail_bad_revision(self):
        sid = ObjectSid.from_bytes(LOCAL_SYSTEM_BYTES)
        sid[REVISION] = 2
        with pytest.raises(InvalidSidRevisionException):
            sid.get_data()
        with pytest.raises(InvalidSidRevisionException):
            sid.to_sddl_string()


class TestObjectSidString(object):

    def test_parse_canonical(self):
        sid = ObjectSid.from_sddl_string("S-1-5-32-544")
        assert sid[IDENTIFIER_AUTHORITY] == 5
        assert sid[SUB_AUTHORITY] == [32, 544]
        assert sid.to_canonical_string_format() == "S-1-5-32-544"
        assert sid.to_sddl_string() == "BA"

    def test_parse_without_sub_authorities(self):
        sid = ObjectSid.from_sddl_string("S-1-5")
        assert sid[SUB_AUTHORITY] == []
        assert sid.get_data() == b"\x01\x00\x00\x00\x00\x00\x00\x05"

    @pytest.mark.parametrize('sid_str', ["S-1-0x100000000-1", "S-1-0X100000000-1"])
    def test_parse_hex_authority(self, sid_str):
        sid = ObjectSid.from_sddl_string(sid_str)
        assert sid[IDENTIFIER_AUTHORITY] == 1 << 32
        assert sid.to_sddl_string() == "S-1-0x100000000-1"

    def test_small_hex_authority_renders_decimal(self):
        sid = ObjectSid.from_sddl_string("S-1-0x5-18")
        assert sid.to_sddl_string() == "SY"

    def test_largest_authority(self):
        sid = ObjectSid.from_sddl_string("S-1-281474976710655")
        assert sid.to_sddl_string() == "S-1-0xffffffffffff"
        assert ObjectSid.from_bytes(sid.get_data()) == sid

    def test_fifteen_sub_authorities(self):
        sid_str = "S-1-5-21-1-2-3-4-5-6-7-8-9-10-11-12-13-14"
        sid = ObjectSid.from_sddl_string(sid_str)
        assert len(sid[SUB_AUTHORITY]) == 15
        assert sid.to_sddl_string() == sid_str

    def test_parse_fail_too_many_sub_authorities(self):
        with pytest.raises(TooManySubAuthoritiesException):
            ObjectSid.from_sddl_string(SIXTEEN_SUB_AUTHORITIES)

    @pytest.mark.parametrize('sid_str, exception', [
        ("", InvalidSidFormatException),
        ("A-1-1-0", InvalidSidFormatException),
        ("S-1", InvalidSidFormatException),
        ("XY", InvalidSidFormatException),
        ("S-2-5-18", InvalidSidRevisionException),
        ("S-x-5-18", InvalidSidRevisionException),
        ("S-+1-5-18", InvalidSidRevisionException),
        ("S-1-281474976710656", InvalidAuthorityException),
        ("S-1-0x1000000000000", InvalidAuthorityException),
        ("S-1-0xZZ", InvalidAuthorityException),
        ("S-1-five", InvalidAuthorityException),
        ("S-1-5-abc", InvalidSubAuthorityException),
        ("S-1-5-", InvalidSubAuthorityException),
        ("S-1-5-+18", InvalidSubAuthorityException),
        ("S-1-5-4294967296", InvalidSubAuthorityException),
    ])
    def test_parse_fail(self, sid_str, exception):
        with pytest.raises(exception):
            ObjectSid.from_sddl_string(sid_str)

    def test_failures_share_a_parent(self):
        with pytest.raises(InvalidSidException):
            ObjectSid.from_sddl_string("S-1-5-abc")

    @pytest.mark.parametrize('canonical, alias', sorted(WELL_KNOWN_SID_TO_ALIAS.items()))
    def test_alias_idempotence(self, canonical, alias):
        from_alias = ObjectSid.from_sddl_string(alias)
        assert from_alias.to_sddl_string() == alias
        assert from_alias == ObjectSid.from_sddl_string(canonical)
        assert from_alias.to_canonical_string_format() == canonical

    @pytest.mark.parametrize('well_known_sid', list(WellKnownSID))
    def test_well_known_sids_parse(self, well_known_sid):
        sid = ObjectSid.from_sddl_string(well_known_sid)
        assert sid.to_canonical_string_format() == well_known_sid.value

    def test_well_known_sid_renders_alias(self):
        assert ObjectSid.from_sddl_string(WellKnownSID.LOCAL_OS).to_sddl_string() == "SY"

    @pytest.mark.parametrize('well_known_sid, alias', [
        (WellKnownSID.CREATOR_OWNER, "CC"),
        (WellKnownSID.CREATOR_GROUP, "CO"),
        (WellKnownSID.OWNER_RIGHTS, "S-1-3-4"),
    ])
    def test_creator_sid_aliases(self, well_known_sid, alias):
        assert ObjectSid.from_sddl_string(well_known_sid).to_sddl_string() == alias


class TestObjectSidMisc(object):

    def test_ldap_filter_format(self):
        sid = ObjectSid.from_bytes(LOCAL_SYSTEM_BYTES)
        assert sid.to_ldap_filter_string_format() == "\\01\\01\\00\\00\\00\\00\\00\\05\\12\\00\\00\\00"

    def test_equal_sids_hash_the_same(self):
        sids = {ObjectSid.from_sddl_string("SY"), ObjectSid.from_bytes(LOCAL_SYSTEM_BYTES)}
        assert len(sids) == 1

    def test_indented_string(self):
        sid = ObjectSid.from_sddl_string("BA")
        assert sid.to_indented_string(1) == "  S-1-5-32-544 (revision=1, authority=5, sub-authorities=[32, 544])"

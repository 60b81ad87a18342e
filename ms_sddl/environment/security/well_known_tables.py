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

""" Well-known names used by the SDDL string format.

SDDL lets common SIDs and common access masks be written with short aliases (e.g. "SY" for the
local system SID "S-1-5-18", or "FA" for the file-all-access mask 0x1F01FF), and lets access masks
that have no alias be written as a run of two letter codes, each naming one right.
These tables are only used when converting to and from strings. The binary format never uses them.
"""
import re

from typing import List, Optional, Tuple

from ms_sddl.environment.security.security_descriptor_constants import HEX_PREFIX
from ms_sddl.exceptions import SddlParseException


# canonical SID string to its SDDL alias
WELL_KNOWN_SID_TO_ALIAS = {
    'S-1-0-0': 'NULL',
    'S-1-1-0': 'WD',  # Everyone
    'S-1-2-0': 'LG',  # Local group
    # S-1-3-0 (creator owner) is CC and S-1-3-1 (creator group) is CO. S-1-3-4 (owner rights) has no alias.
    'S-1-3-0': 'CC',
    'S-1-3-1': 'CO',
    'S-1-3-2': 'CG',
    'S-1-3-3': 'OW',
    'S-1-5-1': 'DU',  # Dialup
    'S-1-5-2': 'AN',  # Network
    'S-1-5-3': 'BT',  # Batch
    'S-1-5-4': 'IU',  # Interactive
    'S-1-5-6': 'SU',  # Service
    'S-1-5-7': 'AS',  # Anonymous
    'S-1-5-8': 'PS',  # Proxy
    'S-1-5-9': 'ED',  # Enterprise domain controllers
    'S-1-5-10': 'SS',  # Self
    'S-1-5-11': 'AU',  # Authenticated users
    'S-1-5-12': 'RC',  # Restricted code
    'S-1-5-18': 'SY',  # Local system
    'S-1-5-32-544': 'BA',  # BUILTIN\Administrators
    'S-1-5-32-545': 'BU',  # BUILTIN\Users
    'S-1-5-32-546': 'BG',  # BUILTIN\Guests
    'S-1-5-32-547': 'PU',  # BUILTIN\Power Users
    'S-1-5-32-548': 'AO',  # BUILTIN\Account Operators
    'S-1-5-32-549': 'SO',  # BUILTIN\Server Operators
    'S-1-5-32-550': 'PO',  # BUILTIN\Print Operators
    'S-1-5-32-551': 'BO',  # BUILTIN\Backup Operators
    'S-1-5-32-552': 'RE',  # BUILTIN\Replicator
    'S-1-5-32-554': 'RU',  # BUILTIN\Pre-Windows 2000 Compatible Access
    'S-1-5-32-555': 'RD',  # BUILTIN\Remote Desktop Users
    'S-1-5-32-556': 'NO',  # BUILTIN\Network Configuration Operators
    'S-1-5-64-10': 'AA',
    'S-1-5-64-14': 'RA',
    'S-1-5-64-21': 'OA',
}
WELL_KNOWN_ALIAS_TO_SID = {alias: sid for sid, alias in WELL_KNOWN_SID_TO_ALIAS.items()}

# access masks that are common enough combinations of rights to have their own alias
WELL_KNOWN_ACCESS_MASK_TO_ALIAS = {
    0x001F01FF: 'FA',  # file all access
    0x00120089: 'FR',  # file read
    0x00120116: 'FW',  # file write
    0x001200A0: 'FX',  # file execute
}
WELL_KNOWN_ALIAS_TO_ACCESS_MASK = {alias: mask for mask, alias in WELL_KNOWN_ACCESS_MASK_TO_ALIAS.items()}

# two letter codes for the individual rights within an access mask
ACCESS_MASK_COMPONENT_TO_VALUE = {
    # generic rights
    'GA': 0x10000000,  # generic all
    'GX': 0x20000000,  # generic execute
    'GW': 0x40000000,  # generic write
    'GR': 0x80000000,  # generic read

    'MA': 0x02000000,  # maximum allowed
    'AS': 0x01000000,  # access system security

    # standard rights
    'SY': 0x00100000,  # synchronize
    'WO': 0x00080000,  # write owner
    'WD': 0x00040000,  # write DAC
    'RC': 0x00020000,  # read control
    'SD': 0x00010000,  # delete

    # directory service object rights
    'CR': 0x00000100,  # control access
    'LO': 0x00000080,  # list object
    'DT': 0x00000040,  # delete tree
    'WP': 0x00000020,  # write property
    'RP': 0x00000010,  # read property
    'SW': 0x00000008,  # self write
    'LC': 0x00000004,  # list children
    'DC': 0x00000002,  # delete child
    'CC': 0x00000001,  # create child
}
# decomposition always walks the components from the lowest bit to the highest so that output is stable
ACCESS_MASK_COMPONENTS_BY_VALUE = sorted((value, code) for code, value in ACCESS_MASK_COMPONENT_TO_VALUE.items())

ACCESS_MASK_COMPONENT_LEN = 2
MAX_ACCESS_MASK = 0xFFFFFFFF
HEX_DIGITS_RE = re.compile('[0-9a-fA-F]+')
DECIMAL_DIGITS_RE = re.compile('[0-9]+')


def sid_alias_for(canonical_sid: str) -> Optional[str]:
    """ Given a canonical SID string (e.g. S-1-5-18), return its SDDL alias if it has one. """
    return WELL_KNOWN_SID_TO_ALIAS.get(canonical_sid)


def canonical_sid_for_alias(alias: str) -> Optional[str]:
    """ Given an SDDL SID alias (e.g. SY), return the canonical SID string it stands for if
    it is registered.
    """
    return WELL_KNOWN_ALIAS_TO_SID.get(alias)


def decompose_access_mask(mask: int) -> Tuple[List[str], int]:
    """ Break an access mask down into the codes of the individual rights it contains, lowest bit
    first. Also returns whatever part of the mask couldn't be represented by a known code.
    """
    components = []
    for value, code in ACCESS_MASK_COMPONENTS_BY_VALUE:
        if mask & value == value:
            components.append(code)
            mask ^= value
    return components, mask


def compose_access_mask(components: List[str]) -> Tuple[int, List[str]]:
    """ Combine the codes of individual rights into an access mask. Also returns the codes that
    were not recognized, in the order they were given.
    """
    mask = 0
    unrecognized = []
    for code in components:
        value = ACCESS_MASK_COMPONENT_TO_VALUE.get(code)
        if value is None:
            unrecognized.append(code)
        else:
            mask |= value
    return mask, unrecognized


def access_mask_to_string(mask: int) -> str:
    """ Render an access mask the way it's written in an ACE string.
    Well-known combinations use their alias. Otherwise the mask is written as the codes for its
    individual rights, and if any bit has no code (or there are no bits at all) we fall back to
    8 hex digits.
    """
    alias = WELL_KNOWN_ACCESS_MASK_TO_ALIAS.get(mask)
    if alias is not None:
        return alias

    components, remaining_mask = decompose_access_mask(mask)
    if components and remaining_mask == 0:
        return ''.join(components)
    return '{}{:08X}'.format(HEX_PREFIX, mask)


def parse_access_mask_string(mask_str: str) -> int:
    """ Parse the access mask field of an ACE string. This may be a well-known alias, a hex
    literal with a 0x prefix, or a run of two letter codes for individual rights.
    """
    alias_mask = WELL_KNOWN_ALIAS_TO_ACCESS_MASK.get(mask_str)
    if alias_mask is not None:
        return alias_mask

    if mask_str.startswith(HEX_PREFIX):
        hex_digits = mask_str[len(HEX_PREFIX):]
        if not HEX_DIGITS_RE.fullmatch(hex_digits) or int(hex_digits, 16) > MAX_ACCESS_MASK:
            raise SddlParseException('invalid hexadecimal access mask: {}'.format(mask_str))
        return int(hex_digits, 16)

    if mask_str and len(mask_str) % ACCESS_MASK_COMPONENT_LEN == 0:
        codes = [mask_str[i:i + ACCESS_MASK_COMPONENT_LEN]
                 for i in range(0, len(mask_str), ACCESS_MASK_COMPONENT_LEN)]
        mask, unrecognized = compose_access_mask(codes)
        if not unrecognized:
            return mask

    raise SddlParseException('unknown access mask: {}'.format(mask_str))

""" Conversions between the binary and string forms of security descriptors, and the glue needed to read
and write them over LDAP.
"""
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

from ldap3 import MODIFY_REPLACE
from ldap3.protocol.controls import build_control
from pyasn1.type.namedtype import NamedTypes, NamedType
from pyasn1.type.univ import Sequence, Integer
from typing import Dict, List, Union

from ms_sddl import logging_utils
from ms_sddl.core.security_descriptor import SelfRelativeSecurityDescriptor
from ms_sddl.environment.security.security_descriptor_constants import (
    AD_SERVER_SECURITY_DESCRIPTOR_FLAGS_OID,
    DACL_SECURITY_INFORMATION,
    GROUP_SECURITY_INFORMATION,
    OWNER_SECURITY_INFORMATION,
    SACL_SECURITY_INFORMATION,
    SECURITY_DESCRIPTOR_LDAP_ATTRIBUTE,
)
from ms_sddl.exceptions import SecurityDescriptorDecodeException


logger = logging_utils.get_logger()

FLAGS = 'Flags'


def parse_security_descriptor_bytes(data: bytes) -> SelfRelativeSecurityDescriptor:
    """ Decode a self-relative security descriptor from bytes """
    return SelfRelativeSecurityDescriptor.from_bytes(data)


def security_descriptor_to_bytes(security_descriptor: SelfRelativeSecurityDescriptor) -> bytes:
    """ Encode a security descriptor to its self-relative binary format """
    return security_descriptor.get_data()


def parse_security_descriptor_string(sddl_string: str) -> SelfRelativeSecurityDescriptor:
    """ Parse a security descriptor from its SDDL string format """
    return SelfRelativeSecurityDescriptor.from_sddl_string(sddl_string)


def security_descriptor_to_string(security_descriptor: SelfRelativeSecurityDescriptor) -> str:
    """ Render a security descriptor in its SDDL string format """
    return security_descriptor.to_sddl_string()


def sddl_string_to_bytes(sddl_string: str) -> bytes:
    """ Convert an SDDL string directly into a self-relative binary security descriptor """
    return security_descriptor_to_bytes(parse_security_descriptor_string(sddl_string))


def bytes_to_sddl_string(data: bytes) -> str:
    """ Convert a self-relative binary security descriptor directly into an SDDL string """
    return security_descriptor_to_string(parse_security_descriptor_bytes(data))


def get_security_descriptor_read_controls(read_sacl: bool = False) -> List:
    """ Get the LDAP query control needed to read a security descriptor, which contains a record's
    rights and permissions, including its self-operation rights and the rights of others to act
    upon it.
    If read_sacl is True, we'll build a control that will try to read both the system ACL (SACL),
    which includes information about how actions are audited and tracked in the AD event log, as
    well as the discretionary ACL (DACL), which just says who can do what to the object.
    Otherwise, we just try to read the owner, group and discretionary ACL.

    Reading the SACL is much more privileged than the DACL, so the default is to only read our DACL.
    """
    sd_flags = OWNER_SECURITY_INFORMATION | GROUP_SECURITY_INFORMATION | DACL_SECURITY_INFORMATION
    if read_sacl:
        sd_flags |= SACL_SECURITY_INFORMATION
    sd_control = SecurityDescriptorFlags()
    sd_control.setComponentByName(FLAGS, sd_flags)
    controls = [build_control(AD_SERVER_SECURITY_DESCRIPTOR_FLAGS_OID, True, sd_control)]
    return controls


def parse_security_descriptor_from_ldap_value(value: Union[bytes, List[bytes]]) -> SelfRelativeSecurityDescriptor:
    """ Decode the nTSecurityDescriptor value of an entry returned by an LDAP search. 1-item lists
    sometimes show up in responses, and controls can also affect this, so those are unwrapped.
    """
    if isinstance(value, list):
        if len(value) != 1:
            raise SecurityDescriptorDecodeException('Expected exactly 1 {} value, but found {}'
                                                    .format(SECURITY_DESCRIPTOR_LDAP_ATTRIBUTE, len(value)))
        value = value[0]
    if not isinstance(value, bytes):
        raise SecurityDescriptorDecodeException('{} value must be bytes, but was of type {}'
                                                .format(SECURITY_DESCRIPTOR_LDAP_ATTRIBUTE, type(value)))
    logger.debug('Decoding %s value of %s bytes', SECURITY_DESCRIPTOR_LDAP_ATTRIBUTE, len(value))
    return parse_security_descriptor_bytes(value)


def get_security_descriptor_modify_changes(security_descriptor: SelfRelativeSecurityDescriptor) -> Dict:
    """ Build the changes to pass to an ldap3 connection's modify in order to replace the security
    descriptor of an object with the one given.
    """
    return {
        SECURITY_DESCRIPTOR_LDAP_ATTRIBUTE: (MODIFY_REPLACE, [security_descriptor_to_bytes(security_descriptor)])
    }


class SecurityDescriptorFlags(Sequence):
    """ This is just a class for holding LDAP controls. Ansible has some nice utilities for this,
    with plenty of examples, and it's well maintained. So this is likely better than completely
    writing a LDAP control container from scratch.
    """
    # SDFlagsRequestValue ::= SEQUENCE {
    #     Flags    INTEGER
    # }
    componentType = NamedTypes(NamedType(FLAGS, Integer()))

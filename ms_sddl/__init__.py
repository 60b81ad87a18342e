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

from ms_sddl.core.ace import ACE
from ms_sddl.core.acl import ACL
from ms_sddl.core.object_sid import ObjectSid
from ms_sddl.core.security_descriptor import (
    SelfRelativeSecurityDescriptor,
    control_flag_names,
)

from ms_sddl.environment.security.security_descriptor_constants import *

from ms_sddl.environment.security.security_descriptor_utils import (
    bytes_to_sddl_string,
    get_security_descriptor_modify_changes,
    get_security_descriptor_read_controls,
    parse_security_descriptor_bytes,
    parse_security_descriptor_from_ldap_value,
    parse_security_descriptor_string,
    sddl_string_to_bytes,
    security_descriptor_to_bytes,
    security_descriptor_to_string,
)
from ms_sddl.environment.security.well_known_tables import (
    access_mask_to_string,
    canonical_sid_for_alias,
    compose_access_mask,
    decompose_access_mask,
    parse_access_mask_string,
    sid_alias_for,
)

from ms_sddl.exceptions import *
from ms_sddl.logging_utils import configure_log_level, get_logger

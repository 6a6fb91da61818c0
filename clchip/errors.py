#!/usr/bin/env python3

"""
Shared Exceptions

Anything raised while stepping the CPU derives from ExecutionError, so a host
can trap a misbehaving program with a single except clause.  The concrete
errors live beside the component that raises them.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"


class ExecutionError(Exception):
    pass

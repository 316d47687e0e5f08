# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Pulwave Contributors

import sys

from .cli import main

sys.exit(main())

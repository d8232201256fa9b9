# -*- coding: utf-8 -*-
"""CardiaSense — cardiovascular risk dashboard backend."""

__version__ = "1.0.0"

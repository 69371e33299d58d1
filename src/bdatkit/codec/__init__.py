#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
BDAT 二进制编解码

提供 BdatReader (解码) 和 BdatWriter (编码)。
"""

from .reader import BdatReader
from .writer import BdatWriter
from .layout import FileHeader, TableHeader, compute_offsets

__all__ = [
    "BdatReader",
    "BdatWriter",
    "FileHeader",
    "TableHeader",
    "compute_offsets",
]

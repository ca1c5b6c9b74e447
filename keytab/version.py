#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
keytab版本定义
"""

# 版本号定义
KEYTAB_VERSION_MAJOR = 1
KEYTAB_VERSION_MINOR = 0
KEYTAB_VERSION_PATCH = 0

# 完整版本号
KEYTAB_VERSION = f"{KEYTAB_VERSION_MAJOR}.{KEYTAB_VERSION_MINOR}.{KEYTAB_VERSION_PATCH}"


def get_version() -> str:
    """
    获取keytab版本号

    Returns:
        str: 版本号字符串
    """
    return KEYTAB_VERSION


def get_version_tuple() -> tuple:
    """获取版本号元组 (major, minor, patch)"""
    return (KEYTAB_VERSION_MAJOR, KEYTAB_VERSION_MINOR, KEYTAB_VERSION_PATCH)


# 兼容性常量
VERSION = KEYTAB_VERSION

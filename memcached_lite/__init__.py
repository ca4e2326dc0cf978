#!/usr/bin/env python3
"""
memcached-lite - mackerel-agent plugin for memcached

Polls a memcached server's ``stats`` output and reports cache usage,
request and eviction rates, hit rate and connections, computed against the
snapshot saved by the previous run.
"""

__version__ = '1.0.0'

__all__ = ['run_plugin', 'MemcachedLitePlugin']


def __getattr__(name):
    # Import lazily to avoid dependency issues at package level
    if name in __all__:
        from . import plugin
        return getattr(plugin, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

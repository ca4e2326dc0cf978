#!/usr/bin/env python3
"""
Graph definitions printed when mackerel-agent asks for plugin metadata.
"""

import json

META_ENV_VAR = 'MACKEREL_AGENT_PLUGIN_META'

GRAPH_DEFINITIONS = {
    'graphs': {
        'memcached-lite.cache-usage-byte': {
            'label': 'memcached-lite cache usage byte',
            'unit': 'integer',
            'metrics': [
                {'name': 'used', 'label': 'Used'},
                {'name': 'max', 'label': 'Max'},
            ],
        },
        'memcached-lite.cache-items': {
            'label': 'memcached-lite cache items',
            'unit': 'integer',
            'metrics': [
                {'name': 'current', 'label': 'Used', 'stacked': True},
            ],
        },
        'memcached-lite.eviction-per-sec': {
            'label': 'memcached-lite evicted items per sec',
            'unit': 'float',
            'metrics': [
                {'name': 'total', 'label': 'Total'},
                {'name': 'unfetched', 'label': 'Unfetched'},
            ],
        },
        'memcached-lite.req-per-sec': {
            'label': 'memcached-lite request per sec',
            'unit': 'float',
            'metrics': [
                {'name': 'get', 'label': 'Get'},
                {'name': 'set', 'label': 'Set', 'stacked': True},
            ],
        },
        'memcached-lite.cache-hit': {
            'label': 'memcached-lite cache hit rate',
            'unit': 'float',
            'metrics': [
                {'name': 'rate', 'label': 'Rate', 'stacked': True},
            ],
        },
        'memcached-lite.connections': {
            'label': 'memcached-lite connections',
            'unit': 'integer',
            'metrics': [
                {'name': 'current', 'label': 'Current'},
                {'name': 'max', 'label': 'Max'},
            ],
        },
    }
}


def is_meta_mode(environ) -> bool:
    """True when the agent requested graph definitions instead of values"""
    return bool(environ.get(META_ENV_VAR))


def render_definitions() -> str:
    return json.dumps(GRAPH_DEFINITIONS, indent=2) + '\n'

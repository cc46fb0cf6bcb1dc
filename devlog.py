import json
import logging

import config

logger = logging.getLogger('workout.debug')


def devlog(label, data, enabled=None):
    """Trace router decisions when DEBUG_WORKOUT=1; output is truncated"""
    if not (config.DEBUG_WORKOUT if enabled is None else enabled):
        return
    try:
        text = data if isinstance(data, str) else json.dumps(data, default=str)
    except (TypeError, ValueError):
        text = '[unserializable]'
    logger.info(f"🔍 DBG/{label} {text[:2000]}")

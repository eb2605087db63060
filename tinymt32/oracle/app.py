# oracle/app.py
# Flask oracle exposing /get_output and /validate backed by TinyMT32
# Supports SEED_MODE = 'fixed' | 'random' | 'time'

import logging
import os
import threading
import time

from flask import Flask, jsonify, request

from . import config
from .rng32 import MASK32, TinyMT32

# Setup logging
logging.basicConfig(level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger('oracle')


def derive_seed(mode=None):
    """
    Derive a 32-bit seed according to config.SEED_MODE (or `mode` if given).
    Priority:
      - 'fixed' and config.SEED is int -> use it
      - 'fixed' and config.SEED is None -> use config.DEFAULT_SEED
      - 'random' -> use os.urandom(4)
      - 'time' -> current time (seconds or ms) truncated to 32 bits
    """
    mode = (mode or config.SEED_MODE or 'fixed').lower()
    if mode == 'fixed':
        if config.SEED is not None:
            seed = config.SEED
            logger.info(f"Using fixed SEED from config: {seed!r}")
            return seed
        seed = config.DEFAULT_SEED
        logger.info(f"Using default fixed SEED: {seed:08x}")
        return seed
    elif mode == 'random':
        seed = int.from_bytes(os.urandom(4), 'big')
        logger.info(f"Using random SEED (os.urandom): {seed:08x}")
        return seed
    elif mode == 'time':
        if config.TIME_GRANULARITY == 'ms':
            t = int(time.time() * 1000)
        else:
            t = int(time.time())
        # intentionally low-entropy: the seed is guessable from the clock
        seed = t & MASK32
        logger.info(f"Using time-derived SEED (granu={config.TIME_GRANULARITY}): {seed:08x}")
        return seed
    else:
        seed = config.DEFAULT_SEED
        logger.warning(f"Unknown SEED_MODE '{mode}', falling back to default SEED: {seed:08x}")
        return seed


def mask_output(x, bits=config.OUTPUT_BITS, select=config.OUTPUT_SELECT):
    if bits >= 32:
        return x & MASK32
    if select == 'high':
        return (x >> (32 - bits)) & ((1 << bits) - 1)
    else:
        return x & ((1 << bits) - 1)


def hex_width(bits):
    return (min(bits, 32) + 3) // 4


def create_app(seed=None, output_bits=None, output_select=None, rate_limit_rps=None):
    if seed is None:
        seed = derive_seed()
    bits = config.OUTPUT_BITS if output_bits is None else output_bits
    select = config.OUTPUT_SELECT if output_select is None else output_select
    rps = config.RATE_LIMIT_RPS if rate_limit_rps is None else rate_limit_rps
    if not 1 <= bits <= 32:
        raise ValueError(f"output_bits must be in 1..32, got {bits}")
    if select not in ('high', 'low'):
        raise ValueError(f"output_select must be 'high' or 'low', got {select!r}")
    if rps is not None and rps < 0:
        raise ValueError(f"rate_limit_rps must be >= 0, got {rps}")

    app = Flask(__name__)
    rng = TinyMT32(seed)
    # the generator is not thread-safe; the dev server may be threaded
    lock = threading.Lock()
    min_interval = 1.0 / rps if rps else 0.0
    last_request = [None]

    app.config['SEED'] = seed
    app.config['OUTPUT_BITS'] = bits
    app.config['OUTPUT_SELECT'] = select

    def draw():
        with lock:
            return rng.next_raw()

    def fmt(value):
        return format(value, '0{}x'.format(hex_width(bits)))

    @app.before_request
    def throttle():
        if not min_interval:
            return None
        now = time.monotonic()
        with lock:
            if last_request[0] is not None and now - last_request[0] < min_interval:
                logger.warning("Rate limit exceeded for %s", request.path)
                return jsonify({'ok': False, 'reason': 'rate limited'}), 429
            last_request[0] = now
        return None

    @app.route('/get_output', methods=['GET'])
    def get_output():
        out = mask_output(draw(), bits, select)
        return jsonify({'output': fmt(out), 'bits': bits, 'select': select})

    @app.route('/validate', methods=['POST'])
    def validate():
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or 'candidate' not in data:
            return jsonify({'ok': False, 'reason': 'need candidate'}), 400
        try:
            candidate = int(data['candidate'], 16)
        except (TypeError, ValueError):
            return jsonify({'ok': False, 'reason': 'bad hex'}), 400
        expected = mask_output(draw(), bits, select)
        ok = (candidate & ((1 << bits) - 1)) == expected
        logger.info(f"Validate candidate={candidate:x} ok={ok}")
        return jsonify({'ok': ok, 'expected': fmt(expected)})

    return app


if __name__ == '__main__':
    app = create_app()
    logger.info(f"Starting oracle at http://{config.HOST}:{config.PORT} with SEED_MODE={config.SEED_MODE}")
    app.run(host=config.HOST, port=config.PORT, debug=False)

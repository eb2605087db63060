# attacker/seed_search.py
# Recover the 32-bit seed behind an oracle running SEED_MODE='time' (or any
# seed known to lie in a small window) by replaying TinyMT32 for every
# candidate seed at once with numpy.

import argparse
import time

import numpy as np

from ..oracle.rng32 import MASK, MASK32, MAT1, MAT2, MIN_LOOP, PRE_LOOP, SH0, SH1, SH8, TMAT, TinyMT32
from .recover import ORACLE, query_oracle, truncate

CHUNK = 1 << 20

_U = np.uint32


def _next_state(st):
    y = st[3]
    x = (st[0] & _U(MASK)) ^ st[1] ^ st[2]
    x = x ^ (x << _U(SH0))
    y = y ^ (y >> _U(SH0)) ^ x
    odd = (y & _U(1)).astype(bool)
    new1 = np.where(odd, st[2] ^ _U(MAT1), st[2])
    new2 = x ^ (y << _U(SH1))
    new2 = np.where(odd, new2 ^ _U(MAT2), new2)
    return [st[1], new1, new2, y]


def _temper(st):
    t1 = st[0] + (st[2] >> _U(SH8))
    t0 = st[3] ^ t1
    return np.where((t1 & _U(1)).astype(bool), t0 ^ _U(TMAT), t0)


def tinymt32_batch(seeds, count):
    """First `count` outputs for every seed, shape (count, len(seeds)), uint32.

    Bit-identical to TinyMT32(seed).next_raw() repeated; uint32 arrays wrap
    modulo 2**32 the same way the scalar code masks.
    """
    s = np.asarray(seeds, dtype=np.uint32)
    st = [s.copy(), np.full_like(s, MAT1), np.full_like(s, MAT2), np.full_like(s, TMAT)]
    for i in range(1, MIN_LOOP):
        prev = st[(i - 1) & 3]
        st[i & 3] = st[i & 3] ^ (_U(i) + _U(1812433253) * (prev ^ (prev >> _U(30))))
    for _ in range(PRE_LOOP):
        st = _next_state(st)
    out = np.empty((count, s.size), dtype=np.uint32)
    for k in range(count):
        st = _next_state(st)
        out[k] = _temper(st)
    return out


def search_seeds(observed, lo, hi, output_bits=32, output_select='high', chunk=CHUNK):
    """Every seed in [lo, hi) whose first outputs truncate to `observed`."""
    if not observed:
        raise ValueError("need at least one observed output")
    lo = max(0, lo)
    hi = min(hi, 1 << 32)
    # observed values are already truncated by the oracle
    first = _U(observed[0])
    found = []
    for start in range(lo, hi, chunk):
        seeds = np.arange(start, min(start + chunk, hi), dtype=np.uint64).astype(np.uint32)
        head = truncate_array(tinymt32_batch(seeds, 1)[0], output_bits, output_select)
        for seed in seeds[head == first]:
            seed = int(seed)
            # confirm the rest with the scalar generator
            rng = TinyMT32(seed)
            if all(truncate(rng.next_raw(), output_bits, output_select) == o for o in observed):
                found.append(seed)
    return found


def seed_ranges(lo, hi):
    """Split a clock window [lo, hi) into seed ranges; time seeds wrap modulo 2**32."""
    span = hi - lo
    if span <= 0:
        return []
    if span >= 1 << 32:
        return [(0, 1 << 32)]
    start = lo & MASK32
    end = start + span
    if end <= 1 << 32:
        return [(start, end)]
    return [(start, 1 << 32), (0, end - (1 << 32))]


def time_window(now, window, granularity='s'):
    """Clock window covering the last `window` seconds, in the oracle's time unit."""
    if granularity == 'ms':
        t = int(now * 1000)
        return t - window * 1000, t + 1
    t = int(now)
    return t - window, t + 1


def truncate_array(values, output_bits, output_select):
    values = np.asarray(values, dtype=np.uint32)
    if output_bits >= 32:
        return values
    if output_select == 'high':
        return values >> _U(32 - output_bits)
    return values & _U((1 << output_bits) - 1)


def main(argv=None):
    parser = argparse.ArgumentParser()
    parser.add_argument('--samples', type=int, default=4, help='outputs to collect (first draws of the oracle)')
    parser.add_argument('--output_bits', type=int, default=32)
    parser.add_argument('--output_select', choices=('high', 'low'), default='high')
    parser.add_argument('--lo', type=int, default=None, help='first seed of the window')
    parser.add_argument('--hi', type=int, default=None, help='end of the window (exclusive)')
    parser.add_argument('--window', type=int, default=3600,
                        help='seconds before now to search when --lo/--hi are not given')
    parser.add_argument('--granularity', choices=('s', 'ms'), default='s',
                        help='clock unit the oracle seeded with (TIME_GRANULARITY)')
    parser.add_argument('--oracle', default=ORACLE)
    args = parser.parse_args(argv)

    if args.lo is None or args.hi is None:
        lo, hi = time_window(time.time(), args.window, args.granularity)
    else:
        lo, hi = args.lo, args.hi

    t0 = time.time()
    print(f"[attacker] Querying oracle for {args.samples} outputs...")
    obs = query_oracle(args.samples, args.oracle)
    found = []
    for start, end in seed_ranges(lo, hi):
        print(f"[attacker] Searching seeds in [{start}, {end}) ({end - start} candidates)...")
        found.extend(search_seeds(obs, start, end, args.output_bits, args.output_select))
    if not found:
        print("[attacker] No seed in window reproduces the observations.")
        return 1
    for seed in found:
        rng = TinyMT32(seed)
        for _ in range(len(obs)):
            rng.next_state()
        nxt = truncate(rng.next_raw(), args.output_bits, args.output_select)
        print(f"[attacker] Seed {seed} ({seed:08x}) matches, next output {nxt:x}")
    print(f"[attacker] Done in {time.time() - t0:.2f}s")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())

# attacker/recover.py
# Attacker that queries oracle /get_output many times, builds linear equations
# over GF(2) for the TinyMT32 state, recovers it, then predicts the next output.
#
# next_state is linear over GF(2) (xor, shifts, and an xor of constants gated by
# a state bit). Tempering is not, because of the 32-bit addition, but bit 0 of
# every output equals bit 0 of status[3]: tmat has bit 0 set, so the carry-free
# low bit of t1 cancels out. Every draw whose low bit is visible gives one
# equation in the 128 state bits.

import argparse
import time

import requests

from ..oracle.rng32 import MASK, MASK32, MAT1, MAT2, SH0, SH1, TinyMT32

ORACLE = 'http://127.0.0.1:5000'

BITS = 128
# top bit of status[0] never reaches the output
STATE_RANK = 127


def _shl(word, k):
    return [word[b - k] if b >= k else 0 for b in range(32)]


def _shr(word, k):
    return [word[b + k] if b + k < 32 else 0 for b in range(32)]


def _xor(a, b):
    return [p ^ q for p, q in zip(a, b)]


def advance_symbolic(st):
    """Apply next_state to a symbolic state.

    st is 4 words of 32 integer masks; mask bit i set means unknown i (word
    i // 32, bit i % 32 of the initial state) contributes to that state bit.
    """
    s0, s1, s2, s3 = st
    x = [(s0[b] if (MASK >> b) & 1 else 0) ^ s1[b] ^ s2[b] for b in range(32)]
    x = _xor(x, _shl(x, SH0))
    y = _xor(s3, _xor(_shr(s3, SH0), x))
    new1 = list(s2)
    new2 = _xor(x, _shl(y, SH1))
    # `if y & 1` becomes: xor the parameter bits in, scaled by y's bit 0
    y0 = y[0]
    for b in range(32):
        if (MAT1 >> b) & 1:
            new1[b] ^= y0
        if (MAT2 >> b) & 1:
            new2[b] ^= y0
    return [list(s1), new1, new2, y]


def build_symbolic_map(steps):
    # maps[t] is the mask of initial-state bits whose xor is bit 0 of output t
    state = [[1 << (w * 32 + b) for b in range(32)] for w in range(4)]
    maps = []
    for _ in range(steps):
        state = advance_symbolic(state)
        maps.append(state[3][0])
    return maps


def low_bit_visible(output_bits, output_select):
    return output_bits >= 32 or output_select == 'low'


def construct_equations(observed_outputs, output_bits=32, output_select='high'):
    # observed_outputs: list of (possibly truncated) outputs, first one drawn
    # right after the state being recovered
    if not low_bit_visible(output_bits, output_select):
        return [], []
    maps = build_symbolic_map(len(observed_outputs))
    rows = []
    rhs = []
    for mask, out in zip(maps, observed_outputs):
        if mask == 0:
            continue
        rows.append(mask)
        rhs.append(out & 1)
    return rows, rhs


# Gaussian elimination over GF(2) with rows as integer masks (length 128)
def solve_gf2(rows, rhs):
    n_eq = len(rows)
    rows = rows[:]
    rhs = rhs[:]
    pivot = {}
    row = 0
    for col in reversed(range(BITS)):
        if row >= n_eq:
            break
        sel = None
        for r in range(row, n_eq):
            if (rows[r] >> col) & 1:
                sel = r
                break
        if sel is None:
            continue
        rows[row], rows[sel] = rows[sel], rows[row]
        rhs[row], rhs[sel] = rhs[sel], rhs[row]
        pivot[col] = row
        # eliminate other rows
        for r in range(n_eq):
            if r != row and ((rows[r] >> col) & 1):
                rows[r] ^= rows[row]
                rhs[r] ^= rhs[row]
        row += 1
    if len(pivot) < STATE_RANK:
        return None
    sol = 0
    for col, r in pivot.items():
        if rhs[r]:
            sol |= (1 << col)
    # verify
    for rmask, rval in zip(rows, rhs):
        lhs = bin(rmask & sol).count('1') & 1
        if lhs != rval:
            return None
    return sol


def state_to_status(state):
    return [(state >> (32 * w)) & MASK32 for w in range(4)]


def predict_outputs(state, skip, count=1):
    """Outputs number skip .. skip + count - 1 drawn after `state`."""
    rng = TinyMT32.from_status(state_to_status(state))
    for _ in range(skip):
        rng.next_state()
    return [rng.next_raw() for _ in range(count)]


def truncate(x, output_bits, output_select):
    if output_bits >= 32:
        return x & MASK32
    if output_select == 'high':
        return (x >> (32 - output_bits)) & ((1 << output_bits) - 1)
    return x & ((1 << output_bits) - 1)


def query_oracle(n, oracle=ORACLE):
    outs = []
    for _ in range(n):
        r = requests.get(oracle + '/get_output', timeout=5)
        r.raise_for_status()
        outs.append(int(r.json()['output'], 16))
    return outs


def main(argv=None):
    parser = argparse.ArgumentParser()
    parser.add_argument('--samples', type=int, default=160, help='number of outputs to collect')
    parser.add_argument('--output_bits', type=int, default=32, help='bits returned by oracle (<=32)')
    parser.add_argument('--output_select', choices=('high', 'low'), default='high',
                        help='which bits the oracle keeps when truncating')
    parser.add_argument('--oracle', default=ORACLE, help='oracle base URL')
    args = parser.parse_args(argv)

    t0 = time.time()
    width = (min(args.output_bits, 32) + 3) // 4
    print(f"[attacker] Querying oracle for {args.samples} outputs (output_bits={args.output_bits})...")
    obs = query_oracle(args.samples, args.oracle)
    for i, o in enumerate(obs[:8]):
        print(f" obs[{i}]: {format(o, '0{}x'.format(width))}")
    if len(obs) > 8:
        print(f" ... {len(obs) - 8} more")
    rows, rhs = construct_equations(obs, args.output_bits, args.output_select)
    print(f"[attacker] Constructed {len(rows)} linear equations. Solving...")
    sol = solve_gf2(rows, rhs)
    if sol is None:
        print("[attacker] Failed to find unique solution. Try more samples or a low-bit output window.")
        print(f"[attacker] Done in {time.time() - t0:.2f}s")
        return 1

    status = state_to_status(sol)
    print("[attacker] Recovered TinyMT32 state: " + ' '.join(format(w, '08x') for w in status))
    predicted = predict_outputs(sol, skip=len(obs))[0]
    cand_hex = format(truncate(predicted, args.output_bits, args.output_select), '0{}x'.format(width))
    print(f"[attacker] Predicted next output: {predicted:08x} (candidate {cand_hex})")
    resp = requests.post(args.oracle + '/validate', json={'candidate': cand_hex}, timeout=5)
    result = resp.json()
    print("[attacker] Validate response:", result)
    if result.get('ok'):
        print("[attacker] Prediction confirmed by oracle")
    print(f"[attacker] Done in {time.time() - t0:.2f}s")
    return 0 if result.get('ok') else 1


if __name__ == '__main__':
    raise SystemExit(main())

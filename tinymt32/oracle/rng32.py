# oracle/rng32.py
# TinyMT32 generator (RFC 8682) used by oracle/app.py and the attacker.
# State: four 32-bit words, 127 effective bits (top bit of status[0] unused).
# Not cryptographically secure, not safe to share between threads without a lock.

MASK32 = 0xFFFFFFFF

# the single parameter set of RFC 8682
MAT1 = 0x8F7011EE
MAT2 = 0xFC78FF1F
TMAT = 0x3793FDFF

MIN_LOOP = 8
PRE_LOOP = 8

SH0 = 1
SH1 = 10
SH8 = 8
MASK = 0x7FFFFFFF


def _check_word(value, name):
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if not 0 <= value <= MASK32:
        raise ValueError(f"{name} must be an unsigned 32-bit value, got {value}")
    return value


class TinyMT32:
    """TinyMT32 pseudo-random source.

    Every 32-bit seed is valid: the parameter set guarantees that none of
    them leads to an all-zero 127-bit state, so seeding does no period
    certification.
    """

    def __init__(self, seed):
        seed = _check_word(seed, 'seed')
        self.mat1 = MAT1
        self.mat2 = MAT2
        self.tmat = TMAT
        self.status = [seed, self.mat1, self.mat2, self.tmat]
        st = self.status
        for i in range(1, MIN_LOOP):
            prev = st[(i - 1) & 3]
            st[i & 3] ^= (i + 1812433253 * (prev ^ (prev >> 30))) & MASK32
        for _ in range(PRE_LOOP):
            self.next_state()

    @classmethod
    def from_status(cls, status):
        """Resume a generator from a raw 4-word state.

        The next draw continues the sequence the state belongs to. Unlike
        seeding, an arbitrary state can be the all-zero fixed point, which
        is rejected.
        """
        words = [_check_word(w, f'status[{i}]') for i, w in enumerate(status)]
        if len(words) != 4:
            raise ValueError(f"status must hold exactly 4 words, got {len(words)}")
        if (words[0] & MASK) == 0 and words[1] == 0 and words[2] == 0 and words[3] == 0:
            raise ValueError("all-zero 127-bit state is a fixed point")
        rng = cls.__new__(cls)
        rng.mat1 = MAT1
        rng.mat2 = MAT2
        rng.tmat = TMAT
        rng.status = words
        return rng

    def next_state(self):
        st = self.status
        y = st[3]
        x = (st[0] & MASK) ^ st[1] ^ st[2]
        x ^= (x << SH0) & MASK32
        y ^= (y >> SH0) ^ x
        st[0] = st[1]
        st[1] = st[2]
        st[2] = x ^ ((y << SH1) & MASK32)
        st[3] = y
        # branch form of RFC 8682's two's-complement masking, same result
        if y & 1:
            st[1] ^= self.mat1
            st[2] ^= self.mat2

    def temper(self):
        st = self.status
        t0 = st[3]
        t1 = (st[0] + (st[2] >> SH8)) & MASK32
        t0 ^= t1
        if t1 & 1:
            t0 ^= self.tmat
        return t0

    def next_raw(self):
        """Advance one step and return the next 32-bit output."""
        self.next_state()
        return self.temper()

    def __iter__(self):
        return self

    def __next__(self):
        return self.next_raw()

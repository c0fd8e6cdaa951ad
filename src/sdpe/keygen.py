"""Core Key Generation Utility, mainly focusing on the concurrent search for two large probable primes.

A pool of generator threads draws prime-like candidates into a queue while checker threads test them and hand the
accepted ones over through a second queue. Once two distinct primes are in, a shared event tells every worker to
stop and the RSA numbers are derived from the pair.

Typical usage example:

    get_pre_primes(12000)
    p, q = generate_primes(64, workers=4)
    (n, e), (n, d) = generate_key_pair(128)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging
import queue
import secrets
import threading
from typing import Callable

from sdpe import maths
from sdpe.errors import KeyGenerationError

PRIME_SIZE_DEF: int = 128
GEN_WORKERS_DEF: int = 2
CANDIDATE_BACKLOG: int = 256

_SMALL_PRIMES: list[int] = []
_SMALL_PRIMES_CAP: int = 0
_POLL_INTERVAL: float = 0.05

logger = logging.getLogger(__name__)


def _sieve(n: int = 10000) -> list[int]:
    """Implements the Sieve of Eratosthenes.

    Uses the textbook Sieve of Eratosthenes to generate a set of primes up to `n`.
    Includes memory space optimization and sieving until root.

    Args:
        n: The number up to which to generate primes. Defaults to 10000. Must be >= 0.

    Returns:
        A list of primes up to `n`.
    """
    if n < 2:
        return []
    i_size = (n - 1) // 2
    candidate: list[bool] = [True] * i_size
    for i in range(int(n**0.5) // 2):
        if candidate[i]:
            r = 2 * i + 3
            for j in range((r * r - 3) // 2, i_size, r):
                candidate[j] = False
    return [2] + [(no * 2 + 3) for no, ele in enumerate(candidate) if ele]


def get_pre_primes(n: int = 10000, change: bool = False) -> list[int]:
    """Get the small primes, automatically generating if necessary.

    Uses the `_SMALL_PRIMES` global as a cache. Regeneration occurs if the requested range is greater, forced by
    `change` or the cache is empty.

    Args:
        n: The number up to which to generate primes. Defaults to 10000. Must be >= 0.
        change: Whether to force a recomputation of primes. Defaults to False.

    Returns:
        List of primes in ascending order. All primes at least to `n` or more unless `change` is True.
    """
    if n < 0:
        raise ValueError("n must be >= 0")
    global _SMALL_PRIMES
    global _SMALL_PRIMES_CAP
    if n > _SMALL_PRIMES_CAP or change or not _SMALL_PRIMES:
        _SMALL_PRIMES = _sieve(n)
        _SMALL_PRIMES_CAP = n
    return _SMALL_PRIMES


def _trial_division(no: int, n: int = 10000) -> bool:
    """Check the provided `no` against the known small primes.

    Runs a fast pre-check before Miller-Rabin by using modulo division on our known frequent primes.

    Args:
         no: The number to check. Must be integer and non-negative.
         n: The number up to which to generate primes. Defaults to 10000.

    Returns:
        False if `no` cannot be prime, True otherwise.
    """
    if no < 2:
        return False
    for prime in get_pre_primes(n):
        if prime**2 > no:
            return True
        if no % prime == 0:
            return False
    return True


def _miller_rabin(w: int, iters: int) -> bool:
    """Perform Miller-Rabin primality test with a fresh random witness each round.

    Args:
        w: Odd integer to be tested.
        iters: Number of Miller-Rabin iterations to perform.

    Returns:
        True if `w` is probably prime, False otherwise.
    """
    if w <= 3:
        return w == 2 or w == 3
    tw = w - 1
    a = (tw & -tw).bit_length() - 1
    m = tw >> a
    for _ in range(iters):
        b = secrets.randbelow(w - 3) + 2
        z = pow(b, m, w)
        if z == 1 or z == w - 1:
            continue
        for _ in range(1, a):
            z = pow(z, 2, w)
            if z == w - 1:
                break
            if z == 1:
                return False
        else:
            return False
    return True


def check_prime(candidate: int, iters: None | int = None, n: int = 10000) -> bool:
    """Performs a composite Primality test, using a limited amount of trial divisions, before a Miller-Rabin test.

    Args:
        candidate: The candidate prime to test.
        iters: Number of Miller-Rabin iterations to perform.
            If not provided the count grows with the bit length of the candidate.
        n: The number up to which to run trial divisions. Defaults to 10000.

    Returns:
        True if `candidate` is probably prime, False otherwise.
    """
    if candidate < 2:
        return False
    if not _trial_division(candidate, n):
        return False
    if iters is None:
        if candidate.bit_length() <= 512:
            iters = 40
        elif candidate.bit_length() <= 1024:
            iters = 56
        elif candidate.bit_length() <= 1536:
            iters = 64
        elif candidate.bit_length() <= 2048:
            iters = 70
        else:
            iters = 74
    return _miller_rabin(candidate, iters)


class _PoolWorker(threading.Thread):
    """Daemon thread of the generation pool.

    A failing worker keeps its exception for `generate_primes` and sets the stop event, so the pool winds down and
    the caller is not left waiting on a queue nobody feeds.
    """

    def __init__(self, halt: threading.Event, name: str) -> None:
        super().__init__(name=name, daemon=True)
        self.halt = halt
        self.error: Exception | None = None

    def run(self) -> None:
        try:
            self.work()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            self.error = exc
            self.halt.set()

    def work(self) -> None:
        raise NotImplementedError


class _CandidateGenerator(_PoolWorker):
    """Pushes prime-like candidates until the stop event is set."""

    def __init__(self, size: int, candidates: queue.Queue, halt: threading.Event, name: str) -> None:
        super().__init__(halt, name)
        self.size = size
        self.candidates = candidates

    def work(self) -> None:
        while not self.halt.is_set():
            cand = maths.rand_primelike(self.size)
            # The event is only polled, a candidate may still land after it is set. Checkers drop it.
            while not self.halt.is_set():
                try:
                    self.candidates.put(cand, timeout=_POLL_INTERVAL)
                    break
                except queue.Full:
                    continue


class _PrimeChecker(_PoolWorker):
    """Tests candidates and publishes the first two distinct probable primes."""

    def __init__(self, candidates: queue.Queue, accepted: queue.Queue, found: list[int], lock: threading.Lock,
                 test: Callable[[int], bool], halt: threading.Event, name: str) -> None:
        super().__init__(halt, name)
        self.candidates = candidates
        self.accepted = accepted
        self.found = found
        self.lock = lock
        self.test = test

    def work(self) -> None:
        while not self.halt.is_set():
            try:
                cand = self.candidates.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue
            if not self.test(cand):
                continue
            with self.lock:
                if self.halt.is_set() or cand in self.found:
                    continue
                self.found.append(cand)
                self.accepted.put(cand)
                logger.debug("%s accepted a %d bit probable prime (%d/2).", self.name, cand.bit_length(),
                             len(self.found))
                if len(self.found) >= 2:
                    self.halt.set()


def generate_primes(size: int = PRIME_SIZE_DEF,
                    workers: int = GEN_WORKERS_DEF,
                    checkers: int = 1,
                    test: Callable[[int], bool] | None = None,
                    backlog: int = CANDIDATE_BACKLOG) -> tuple[int, int]:
    """Search two distinct probable primes of `size` bytes with a pool of threads.

    `workers` generator threads feed the candidate queue, `checkers` checker threads drain it and publish accepted
    primes on the accepted queue. The first two accepted primes are returned in arrival order, so `p` is not
    necessarily the larger one.

    Args:
        size: The size of each prime in bytes. Defaults to 128, a 2048 bit modulus.
        workers: Number of candidate generator threads. Must be >= 1.
        checkers: Number of primality checker threads. Must be >= 1.
        test: Primality test applied to candidates. Defaults to `check_prime`.
        backlog: Capacity of the candidate queue. 0 makes it unbounded.

    Returns:
        The two primes.

    Raises:
        ValueError: If a size or count is out of range.
        KeyGenerationError: If a worker of the pool died.
    """
    if size < 1:
        raise ValueError("Size must be >= 1")
    if workers < 1 or checkers < 1:
        raise ValueError("Worker and checker counts must be >= 1")
    if backlog < 0:
        raise ValueError("Backlog must be >= 0")
    if test is None:
        test = check_prime
        get_pre_primes()
    candidates: queue.Queue[int] = queue.Queue(maxsize=backlog)
    accepted: queue.Queue[int] = queue.Queue()
    halt = threading.Event()
    found: list[int] = []
    lock = threading.Lock()
    pool: list[_PoolWorker] = [
        _CandidateGenerator(size, candidates, halt, f"sdpe-gen-{i}") for i in range(workers)
    ] + [_PrimeChecker(candidates, accepted, found, lock, test, halt, f"sdpe-check-{i}") for i in range(checkers)]
    logger.debug("Searching two %d byte primes with %d generators and %d checkers.", size, workers, checkers)
    for worker in pool:
        worker.start()
    primes: list[int] = []
    try:
        while len(primes) < 2:
            try:
                primes.append(accepted.get(timeout=_POLL_INTERVAL))
            except queue.Empty:
                failed = [worker for worker in pool if worker.error is not None]
                if failed:
                    raise KeyGenerationError(f"{failed[0].name} died during prime generation.") from failed[0].error
    finally:
        halt.set()
        for worker in pool:
            worker.join()
    logger.debug("Prime search done, %d candidates left unchecked.", candidates.qsize())
    return primes[0], primes[1]


def generate_key_pair(size: int = PRIME_SIZE_DEF,
                      workers: int = GEN_WORKERS_DEF,
                      checkers: int = 1,
                      test: Callable[[int], bool] | None = None) -> tuple[tuple[int, int], tuple[int, int]]:
    """Generates an RSA key pair.

    Derives the modulus and totient from two fresh primes, picks the smallest table prime coprime with the totient
    as public exponent and inverts it for the private one.

    Args:
        size: The size of each prime in bytes.
        workers: Number of candidate generator threads.
        checkers: Number of primality checker threads.
        test: Primality test applied to candidates. Defaults to `check_prime`.

    Returns:
        A tuple of (public, private) sub-tuples (modulus, exponent).

    Raises:
        ExponentSelectionError: If no table prime is coprime with the totient.
    """
    p, q = generate_primes(size, workers, checkers, test)
    n = p * q
    totient = (p - 1) * (q - 1)
    e = maths.find_exponent(totient)
    d = maths.euclid(e, totient)
    while d < 0:
        d += totient
    logger.debug("Derived a %d bit modulus with public exponent %d.", n.bit_length(), e)
    return (n, e), (n, d)

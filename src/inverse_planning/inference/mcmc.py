"""Metropolis-Hastings sampling for models with hard conditioning.

A :class:`ConditionedModel` exposes a prior (sampling and log-density), a
stochastic 0/1 conditioning predicate, and a query projection. The sampler
walks a chain over latent parameter mappings and records the query
projection of the current state at every ``lag``-th post-burn-in iteration.

Two proposal kernels are provided:

- :class:`PriorResampleKernel` redraws every latent from the prior on each
  iteration. Prior and proposal densities cancel, so a proposal is accepted
  exactly when its conditioning predicate holds.
- :class:`RandomWalkKernel` perturbs continuous latents with Gaussian noise.
  The predicate is a single-draw unbiased estimate of the match
  probability, which keeps the chain valid in the pseudo-marginal sense.
"""

from __future__ import annotations

import logging
import time
import warnings
from collections.abc import Mapping, Sequence
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import numpy as np

from inverse_planning.core.errors import InferenceTimeoutError, UnsatisfiableConditioningError

logger = logging.getLogger(__name__)

DEFAULT_MAX_INIT_ATTEMPTS = 100_000


@runtime_checkable
class ConditionedModel(Protocol):
    """Protocol for models consumed by :class:`MetropolisHastingsSampler`."""

    @property
    def parameter_names(self) -> tuple[str, ...]:
        """Return names of continuous latents eligible for local moves."""

    def sample_prior(self, rng: np.random.Generator) -> dict[str, Any]:
        """Draw one full latent mapping from the prior."""

    def log_prior(self, params: Mapping[str, Any]) -> float:
        """Return total log-prior density of ``params``."""

    def condition(self, params: Mapping[str, Any], rng: np.random.Generator) -> bool:
        """Return whether a forward simulation under ``params`` matches the data."""

    def query(self, params: Mapping[str, Any]) -> tuple[Any, ...]:
        """Project ``params`` onto the recorded sample tuple."""


@dataclass(frozen=True, slots=True)
class ChainState:
    """One evaluated chain state.

    Parameters
    ----------
    params : dict[str, Any]
        Latent parameter mapping.
    log_likelihood : float
        ``0.0`` when the predicate held, ``-inf`` otherwise.
    log_prior : float | None
        Log-prior density, or ``None`` when the kernel does not need it.
    """

    params: dict[str, Any]
    log_likelihood: float
    log_prior: float | None = None


@dataclass(frozen=True, slots=True)
class MCMCDraw:
    """One retained chain state.

    Parameters
    ----------
    state : ChainState
        Chain state at this retained iteration.
    accepted : bool
        Whether the proposal at this iteration was accepted.
    iteration : int
        Zero-based iteration index in the full chain (including burn-in).
    chain : int
        Zero-based chain index.
    """

    state: ChainState
    accepted: bool
    iteration: int
    chain: int = 0


@dataclass(frozen=True, slots=True)
class MCMCDiagnostics:
    """Diagnostics for one chain.

    Parameters
    ----------
    kernel : str
        Proposal kernel identifier.
    n_iterations : int
        Iterations after initialization, including burn-in.
    burn_in : int
        Number of discarded leading iterations.
    lag : int
        Thinning interval.
    n_kept_draws : int
        Number of retained draws.
    n_accepted : int
        Accepted proposals over all iterations.
    acceptance_rate : float
        ``n_accepted / n_iterations``.
    n_init_attempts : int
        Prior proposals evaluated before the predicate first held.
    elapsed_seconds : float
        Wall-clock time spent in this chain.
    """

    kernel: str
    n_iterations: int
    burn_in: int
    lag: int
    n_kept_draws: int
    n_accepted: int
    acceptance_rate: float
    n_init_attempts: int
    elapsed_seconds: float


@dataclass(frozen=True, slots=True)
class MCMCResult:
    """Pooled sampling output.

    Parameters
    ----------
    samples : tuple[tuple[Any, ...], ...]
        Query projections of retained draws, chain by chain in sampling order.
    draws : tuple[MCMCDraw, ...]
        Retained draws aligned with ``samples``.
    chain_diagnostics : tuple[MCMCDiagnostics, ...]
        One diagnostics record per chain.
    random_seed : int | None
        Seed the chains were spawned from.
    """

    samples: tuple[tuple[Any, ...], ...]
    draws: tuple[MCMCDraw, ...]
    chain_diagnostics: tuple[MCMCDiagnostics, ...]
    random_seed: int | None = None

    @property
    def n_chains(self) -> int:
        """Return number of pooled chains."""

        return len(self.chain_diagnostics)

    @property
    def acceptance_rate(self) -> float:
        """Return acceptance rate pooled over all chains."""

        n_iterations = sum(item.n_iterations for item in self.chain_diagnostics)
        n_accepted = sum(item.n_accepted for item in self.chain_diagnostics)
        return float(n_accepted / n_iterations) if n_iterations else 0.0


@dataclass(frozen=True, slots=True)
class ChainSettings:
    """Run settings for :meth:`MetropolisHastingsSampler.run`.

    Parameters
    ----------
    num_samples : int
        Post-burn-in iterations per chain. Must be a multiple of ``lag``.
    lag : int
        Thinning interval; each chain retains ``num_samples // lag`` draws.
    burn_in : int, optional
        Leading iterations discarded before recording.
    max_init_attempts : int, optional
        Prior proposals allowed before the predicate must first hold.
    timeout_seconds : float | None, optional
        Wall-clock budget per chain.
    n_chains : int, optional
        Independent chains pooled into one result.
    parallel_chains : int | None, optional
        Worker processes; ``None`` or ``1`` runs chains serially.
    random_seed : int | None, optional
        Seed for deterministic sampling.
    """

    num_samples: int
    lag: int = 1
    burn_in: int = 0
    max_init_attempts: int = DEFAULT_MAX_INIT_ATTEMPTS
    timeout_seconds: float | None = None
    n_chains: int = 1
    parallel_chains: int | None = None
    random_seed: int | None = None

    def __post_init__(self) -> None:
        if self.num_samples <= 0:
            raise ValueError("num_samples must be > 0")
        if self.lag <= 0:
            raise ValueError("lag must be > 0")
        if self.num_samples % self.lag != 0:
            raise ValueError("num_samples must be a multiple of lag")
        if self.burn_in < 0:
            raise ValueError("burn_in must be >= 0")
        if self.max_init_attempts <= 0:
            raise ValueError("max_init_attempts must be > 0")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0.0:
            raise ValueError("timeout_seconds must be > 0")
        if self.n_chains <= 0:
            raise ValueError("n_chains must be > 0")
        if self.parallel_chains is not None and self.parallel_chains <= 0:
            raise ValueError("parallel_chains must be > 0")

    @property
    def draws_per_chain(self) -> int:
        """Return retained draws per chain."""

        return self.num_samples // self.lag


class PriorResampleKernel:
    """Independent proposal that redraws all latents from the prior."""

    name = "prior_resample"
    requires_log_prior = False

    def propose(
        self,
        current: Mapping[str, Any],
        *,
        model: ConditionedModel,
        rng: np.random.Generator,
    ) -> dict[str, Any]:
        """Return a fresh prior draw; ``current`` is ignored."""

        return model.sample_prior(rng)

    def log_acceptance_ratio(self, current: ChainState, proposal: ChainState) -> float:
        """Prior and proposal densities cancel, leaving the likelihood ratio."""

        return _log_ratio(proposal.log_likelihood, current.log_likelihood)


class RandomWalkKernel:
    """Gaussian random-walk proposal over continuous latents.

    Parameters
    ----------
    default_scale : float, optional
        Proposal standard deviation for parameters without explicit scale.
    scales : Mapping[str, float] | None, optional
        Per-parameter proposal standard deviations.

    Notes
    -----
    Proposals outside prior support have ``-inf`` log-prior and are rejected
    without running the forward simulation.
    """

    name = "random_walk"
    requires_log_prior = True

    def __init__(
        self,
        *,
        default_scale: float = 0.1,
        scales: Mapping[str, float] | None = None,
    ) -> None:
        if default_scale <= 0.0:
            raise ValueError("default_scale must be > 0")
        provided = dict(scales) if scales is not None else {}
        if any(float(value) <= 0.0 for value in provided.values()):
            raise ValueError("all proposal scales must be > 0")
        self.default_scale = float(default_scale)
        self.scales = {str(name): float(value) for name, value in provided.items()}

    def propose(
        self,
        current: Mapping[str, Any],
        *,
        model: ConditionedModel,
        rng: np.random.Generator,
    ) -> dict[str, Any]:
        """Perturb every continuous latent with independent Gaussian noise."""

        names = tuple(model.parameter_names)
        if not names:
            raise ValueError("random_walk kernel requires a model with continuous parameters")
        unknown = sorted(set(self.scales) - set(names))
        if unknown:
            raise ValueError(f"proposal scales contain unknown parameters: {unknown}")

        scales = np.asarray(
            [self.scales.get(name, self.default_scale) for name in names],
            dtype=float,
        )
        values = np.asarray([float(current[name]) for name in names], dtype=float)
        moved = values + rng.normal(loc=0.0, scale=scales, size=len(names))
        proposal = dict(current)
        proposal.update({name: float(value) for name, value in zip(names, moved, strict=True)})
        return proposal

    def log_acceptance_ratio(self, current: ChainState, proposal: ChainState) -> float:
        """Symmetric proposal: ratio of unnormalized posteriors."""

        if current.log_prior is None or proposal.log_prior is None:
            raise ValueError("random_walk acceptance requires log-prior values on both states")
        return _log_ratio(
            proposal.log_prior + proposal.log_likelihood,
            current.log_prior + current.log_likelihood,
        )


ProposalKernel = PriorResampleKernel | RandomWalkKernel


class MetropolisHastingsSampler:
    """Metropolis-Hastings sampler for :class:`ConditionedModel` instances.

    Parameters
    ----------
    model : ConditionedModel
        Model providing prior, predicate, and query.
    kernel : PriorResampleKernel | RandomWalkKernel | None, optional
        Proposal kernel. Defaults to :class:`PriorResampleKernel`.
    """

    def __init__(
        self,
        model: ConditionedModel,
        *,
        kernel: ProposalKernel | None = None,
    ) -> None:
        self.model = model
        self.kernel = kernel if kernel is not None else PriorResampleKernel()

    def run(self, settings: ChainSettings) -> MCMCResult:
        """Run all chains and pool their retained draws.

        Parameters
        ----------
        settings : ChainSettings
            Chain length, thinning, budgets, and seeding.

        Returns
        -------
        MCMCResult
            Exactly ``n_chains * num_samples // lag`` samples.

        Raises
        ------
        UnsatisfiableConditioningError
            If a chain cannot find an initial state satisfying the predicate.
        InferenceTimeoutError
            If a chain exceeds ``timeout_seconds``.
        """

        seeds = np.random.SeedSequence(settings.random_seed).spawn(settings.n_chains)
        logger.info(
            "running %d chain(s) with kernel=%s num_samples=%d lag=%d burn_in=%d",
            settings.n_chains,
            self.kernel.name,
            settings.num_samples,
            settings.lag,
            settings.burn_in,
        )

        workers = settings.parallel_chains or 1
        if workers > 1 and settings.n_chains > 1:
            with ProcessPoolExecutor(max_workers=min(workers, settings.n_chains)) as executor:
                futures = [
                    executor.submit(_run_chain, self.model, self.kernel, settings, seed, index)
                    for index, seed in enumerate(seeds)
                ]
                outputs = [future.result() for future in futures]
        else:
            outputs = [
                _run_chain(self.model, self.kernel, settings, seed, index)
                for index, seed in enumerate(seeds)
            ]

        draws = tuple(draw for output in outputs for draw in output[0])
        diagnostics = tuple(output[1] for output in outputs)
        for index, item in enumerate(diagnostics):
            if item.n_accepted == 0:
                warnings.warn(
                    f"chain {index} never accepted a proposal after initialization; "
                    "all retained draws are identical",
                    RuntimeWarning,
                    stacklevel=2,
                )

        return MCMCResult(
            samples=tuple(self.model.query(draw.state.params) for draw in draws),
            draws=draws,
            chain_diagnostics=diagnostics,
            random_seed=settings.random_seed,
        )


def sample_posterior(
    model: ConditionedModel,
    *,
    num_samples: int,
    lag: int = 1,
    burn_in: int = 0,
    kernel: ProposalKernel | None = None,
    max_init_attempts: int = DEFAULT_MAX_INIT_ATTEMPTS,
    timeout_seconds: float | None = None,
    n_chains: int = 1,
    parallel_chains: int | None = None,
    random_seed: int | None = None,
) -> MCMCResult:
    """Sample posterior draws for one conditioned model.

    Parameters
    ----------
    model : ConditionedModel
        Model providing prior, predicate, and query.
    num_samples : int
        Post-burn-in iterations per chain.
    lag : int, optional
        Thinning interval.
    burn_in : int, optional
        Discarded leading iterations.
    kernel : PriorResampleKernel | RandomWalkKernel | None, optional
        Proposal kernel. Defaults to prior resampling.
    max_init_attempts : int, optional
        Initialization budget.
    timeout_seconds : float | None, optional
        Wall-clock budget per chain.
    n_chains : int, optional
        Independent chains.
    parallel_chains : int | None, optional
        Worker processes.
    random_seed : int | None, optional
        Optional deterministic sampler seed.

    Returns
    -------
    MCMCResult
        Posterior sampling output.
    """

    settings = ChainSettings(
        num_samples=num_samples,
        lag=lag,
        burn_in=burn_in,
        max_init_attempts=max_init_attempts,
        timeout_seconds=timeout_seconds,
        n_chains=n_chains,
        parallel_chains=parallel_chains,
        random_seed=random_seed,
    )
    return MetropolisHastingsSampler(model, kernel=kernel).run(settings)


def _run_chain(
    model: ConditionedModel,
    kernel: ProposalKernel,
    settings: ChainSettings,
    seed: np.random.SeedSequence,
    chain_index: int,
) -> tuple[list[MCMCDraw], MCMCDiagnostics]:
    """Run one chain; module-level so worker processes can unpickle it."""

    rng = np.random.default_rng(seed)
    started = time.monotonic()
    deadline = (
        started + float(settings.timeout_seconds)
        if settings.timeout_seconds is not None
        else None
    )

    current, n_init_attempts = _initialize(
        model,
        kernel=kernel,
        rng=rng,
        max_attempts=settings.max_init_attempts,
        deadline=deadline,
        timeout_seconds=settings.timeout_seconds,
    )
    logger.debug("chain %d initialized after %d prior proposals", chain_index, n_init_attempts)

    n_iterations = settings.burn_in + settings.num_samples
    accepted_total = 0
    retained: list[MCMCDraw] = []

    for iteration in range(n_iterations):
        if deadline is not None and time.monotonic() > deadline:
            raise InferenceTimeoutError(float(settings.timeout_seconds), iteration)

        proposal_params = kernel.propose(current.params, model=model, rng=rng)
        proposal = _evaluate_state(model, proposal_params, kernel=kernel, rng=rng)

        accepted = _metropolis_accept(kernel.log_acceptance_ratio(current, proposal), rng=rng)
        if accepted:
            current = proposal
            accepted_total += 1

        keep_iteration = (
            iteration >= settings.burn_in
            and ((iteration - settings.burn_in) % settings.lag == 0)
        )
        if keep_iteration:
            retained.append(
                MCMCDraw(state=current, accepted=accepted, iteration=iteration, chain=chain_index)
            )

    elapsed = time.monotonic() - started
    diagnostics = MCMCDiagnostics(
        kernel=kernel.name,
        n_iterations=n_iterations,
        burn_in=settings.burn_in,
        lag=settings.lag,
        n_kept_draws=len(retained),
        n_accepted=accepted_total,
        acceptance_rate=float(accepted_total / n_iterations),
        n_init_attempts=n_init_attempts,
        elapsed_seconds=float(elapsed),
    )
    logger.info(
        "chain %d finished: kept=%d acceptance_rate=%.4f elapsed=%.2fs",
        chain_index,
        diagnostics.n_kept_draws,
        diagnostics.acceptance_rate,
        diagnostics.elapsed_seconds,
    )
    return retained, diagnostics


def _initialize(
    model: ConditionedModel,
    *,
    kernel: ProposalKernel,
    rng: np.random.Generator,
    max_attempts: int,
    deadline: float | None,
    timeout_seconds: float | None,
) -> tuple[ChainState, int]:
    """Draw from the prior until the predicate holds."""

    for attempt in range(1, max_attempts + 1):
        if deadline is not None and time.monotonic() > deadline:
            raise InferenceTimeoutError(float(timeout_seconds), 0)
        state = _evaluate_state(model, model.sample_prior(rng), kernel=kernel, rng=rng)
        if np.isfinite(state.log_likelihood):
            return state, attempt
    raise UnsatisfiableConditioningError(max_attempts)


def _evaluate_state(
    model: ConditionedModel,
    params: dict[str, Any],
    *,
    kernel: ProposalKernel,
    rng: np.random.Generator,
) -> ChainState:
    """Evaluate prior (when needed) and predicate for one latent mapping."""

    log_prior: float | None = None
    if kernel.requires_log_prior:
        log_prior = float(model.log_prior(params))
        if not np.isfinite(log_prior):
            return ChainState(params=params, log_likelihood=float("-inf"), log_prior=log_prior)

    matched = bool(model.condition(params, rng))
    return ChainState(
        params=params,
        log_likelihood=0.0 if matched else float("-inf"),
        log_prior=log_prior,
    )


def _log_ratio(numerator: float, denominator: float) -> float:
    """Return ``numerator - denominator`` with ``-inf`` numerators kept at ``-inf``."""

    if not np.isfinite(numerator):
        return float("-inf")
    return float(numerator - denominator)


def _metropolis_accept(log_alpha: float, *, rng: np.random.Generator) -> bool:
    """Decide Metropolis acceptance for one proposal."""

    if not np.isfinite(log_alpha) and log_alpha < 0.0:
        return False
    if log_alpha >= 0.0:
        return True
    return bool(np.log(rng.uniform(0.0, 1.0)) < log_alpha)


__all__ = [
    "ChainSettings",
    "ChainState",
    "ConditionedModel",
    "DEFAULT_MAX_INIT_ATTEMPTS",
    "MCMCDiagnostics",
    "MCMCDraw",
    "MCMCResult",
    "MetropolisHastingsSampler",
    "PriorResampleKernel",
    "ProposalKernel",
    "RandomWalkKernel",
    "sample_posterior",
]

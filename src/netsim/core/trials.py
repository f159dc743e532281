# src/netsim/core/trials.py
#!/usr/bin/env python3
"""
Trial orchestration: noisy sample networks, a usage heat map, and one final
heat-biased deterministic pass.

States (SynthesisStep.status):
    "idle" -> "running_trials" -> "aggregating" -> "running_final" -> "done"

One step() does one unit of work (a whole trial, the aggregation, or the final
pass) so a viewer can show each trial as it lands. synthesize() drives the
same machine to completion in one call; both give the same final network.

Trial t uses seed t (never 0). The final pass uses seed 0, so it carries no
noise. With no trials the heat map stays all zero and the final pass equals
an unbiased run.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from netsim.core.cost import CostModel
from netsim.core.matrix import build_distance_matrix
from netsim.core.mst import prim_mst
from netsim.core.stitch import stitch_network
from netsim.core.types import (
    Grid, HeatMap, Network, SynthesisConfig, SynthesisResult, Terminal,
    UnreachableTerminal, validate_terminals,
)

logger = logging.getLogger(__name__)

TrialCallback = Callable[[int, Network], None]


def run_pipeline(grid: Grid, terminals: Sequence[Terminal], cost_model: CostModel,
                 allow_diagonals: bool = False) -> Network:
    """Distance matrix -> MST -> stitched network."""
    matrix = build_distance_matrix(grid, terminals, cost_model, allow_diagonals)
    tree = prim_mst(matrix.dist)
    return stitch_network(tree, matrix)


def zero_heat(rows: int, cols: int) -> HeatMap:
    return [[0.0] * cols for _ in range(rows)]


def aggregate_heat(networks: Sequence[Network], rows: int, cols: int) -> HeatMap:
    """Fraction of networks whose cell set contains each cell."""
    if not networks:
        return zero_heat(rows, cols)
    # integer counts keep the result independent of trial order
    counts = [[0] * cols for _ in range(rows)]
    for net in networks:
        for r, c in net.cells:
            counts[r][c] += 1
    total = len(networks)
    return [[n / total for n in row] for row in counts]


@dataclass
class SynthesisStep:
    status: str
    trial_index: int = 0
    network: Optional[Network] = None
    heat_map: Optional[HeatMap] = None


@dataclass
class TrialOrchestrator:
    config: SynthesisConfig = field(default_factory=SynthesisConfig)

    grid: Optional[Grid] = None
    terminals: List[Terminal] = field(default_factory=list)
    status: str = "idle"
    trial_index: int = 0
    trial_networks: List[Network] = field(default_factory=list)
    heat_map: Optional[HeatMap] = None
    final_network: Optional[Network] = None

    # -------------------- lifecycle --------------------

    def init(self, grid: Grid, terminals: Sequence[Terminal]) -> None:
        self.config.validate()
        validate_terminals(grid, terminals)
        self.grid = grid
        self.terminals = list(terminals)
        self.reset()

    def reset(self) -> None:
        self.status = "idle"
        self.trial_index = 0
        self.trial_networks = []
        self.heat_map = None
        self.final_network = None

    def cancel(self) -> None:
        """Abandon the run between trials; nothing collected so far is kept."""
        if self.status != "done":
            logger.info(f"Synthesis cancelled after {self.trial_index} trial(s)")
            self.reset()

    @property
    def trial_total(self) -> int:
        return self.config.effective_trials

    # -------------------- pipeline passes --------------------

    def _trial_model(self, seed: int) -> CostModel:
        return CostModel.for_terminals(self.terminals, seed=seed,
                                       noise_scale=self.config.noise_scale)

    def _run_trial(self, seed: int) -> Network:
        net = run_pipeline(self.grid, self.terminals, self._trial_model(seed),
                           self.config.allow_diagonals)
        logger.debug(f"Trial {seed}: {len(net.paths)} path(s), {len(net.cells)} cell(s)")
        return net

    def _run_final(self) -> Network:
        model = CostModel.for_terminals(self.terminals, heat=self.heat_map,
                                        influence=self.config.trial_influence)
        return run_pipeline(self.grid, self.terminals, model, self.config.allow_diagonals)

    # -------------------- main stepping logic --------------------

    def step(self) -> SynthesisStep:
        if self.grid is None:
            return SynthesisStep(status="idle")

        if self.status == "idle":
            if self.trial_total > 0:
                self.status = "running_trials"
            else:
                self.heat_map = zero_heat(self.grid.rows, self.grid.cols)
                self.status = "running_final"

        if self.status == "running_trials":
            t = self.trial_index + 1
            net = self._run_trial(t)
            self.trial_networks.append(net)
            self.trial_index = t
            if t >= self.trial_total:
                self.status = "aggregating"
            return SynthesisStep(status="running_trials", trial_index=t, network=net)

        if self.status == "aggregating":
            self.heat_map = aggregate_heat(self.trial_networks, self.grid.rows, self.grid.cols)
            self.status = "running_final"
            return SynthesisStep(status="aggregating", trial_index=self.trial_index,
                                 heat_map=self.heat_map)

        if self.status == "running_final":
            self.final_network = self._run_final()
            self.status = "done"

        return SynthesisStep(status="done", trial_index=self.trial_index,
                             network=self.final_network, heat_map=self.heat_map)

    def _run_trials_parallel(self, on_trial: Optional[TrialCallback]) -> None:
        remaining = range(self.trial_index + 1, self.trial_total + 1)
        done: Dict[int, Network] = {}
        with ThreadPoolExecutor(max_workers=min(self.config.workers, len(remaining))) as executor:
            futures = {executor.submit(self._run_trial, seed): seed for seed in remaining}
            for future in as_completed(futures):
                seed = futures[future]
                done[seed] = future.result()
                if on_trial:
                    on_trial(seed, done[seed])
        self.trial_networks.extend(done[seed] for seed in remaining)
        self.trial_index = self.trial_total
        self.status = "aggregating"

    def run(self, on_trial: Optional[TrialCallback] = None) -> Network:
        """Step until done and return the final network."""
        if self.grid is None:
            raise RuntimeError("run() called before init()")
        if (self.status == "idle" and self.config.workers > 1 and self.trial_total > 0):
            self.status = "running_trials"
            self._run_trials_parallel(on_trial)
        while True:
            res = self.step()
            if res.status == "running_trials" and on_trial:
                on_trial(res.trial_index, res.network)
            if res.status == "done":
                return res.network

    def excluded_terminals(self) -> List[UnreachableTerminal]:
        if self.final_network is None:
            return []
        return [UnreachableTerminal(i, self.terminals[i]) for i in self.final_network.excluded]


def synthesize(grid: Grid, terminals: Sequence[Terminal],
               config: Optional[SynthesisConfig] = None,
               on_trial: Optional[TrialCallback] = None) -> SynthesisResult:
    """
    Connect the origin (terminals[0]) to every reachable POI.

    Raises InvalidPrecondition / OutOfBoundsCell before any search starts.
    POIs that cannot be reached are reported in `SynthesisResult.excluded`.
    """
    orch = TrialOrchestrator(config=config or SynthesisConfig())
    orch.init(grid, terminals)
    logger.info(f"Synthesizing network for {len(terminals) - 1} POI(s) on "
                f"{grid.rows}x{grid.cols} grid, {orch.trial_total} trial(s)")

    final = orch.run(on_trial)
    excluded = orch.excluded_terminals()
    for u in excluded:
        logger.warning(f"POI {u.index} at {u.terminal.cell} is unreachable from the origin")
    logger.info(f"Final network: {len(final.paths)} path(s), {len(final.cells)} cell(s)")

    return SynthesisResult(
        trial_networks=list(orch.trial_networks),
        final_network=final,
        heat_map=orch.heat_map,
        excluded=excluded,
    )

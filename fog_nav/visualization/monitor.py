"""
Visualization Module
====================

Ground truth, belief map and executed route rendering.
Helps understand what the agent knew when it decided.
"""

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap
from pathlib import Path
from typing import List, Tuple, Optional, Sequence, Union

from ..config import VisualizationConfig
from ..environment import UNKNOWN
from ..terrain import Terrain


class TerrainVisualizer:
    """
    Static grid visualization.

    Draws the true terrain and an agent's belief map side by side, with
    the executed route and known chargers overlaid. Row 0 is at the top.
    """

    def __init__(self, terrain: np.ndarray, config: Optional[VisualizationConfig] = None):
        """
        Initialize visualizer.

        Args:
            terrain: Ground-truth terrain grid, indexed [y, x]
            config: Visualization configuration
        """
        self.terrain = terrain
        self.config = config or VisualizationConfig()
        self.cmap = ListedColormap(list(self.config.terrain_colors))
        # Belief values shifted by one so UNKNOWN lands on index 0
        self.belief_cmap = ListedColormap(
            [self.config.unknown_color] + list(self.config.terrain_colors)
        )

    def plot_terrain(self, ax=None, title: str = 'Ground truth') -> plt.Axes:
        """Plot the true terrain"""
        if ax is None:
            fig, ax = plt.subplots(figsize=self.config.figure_size)

        ax.imshow(self.terrain, cmap=self.cmap, vmin=0, vmax=len(Terrain) - 1,
                  origin='upper', interpolation='nearest')
        self._style_axes(ax, title)
        return ax

    def plot_belief(self, belief: np.ndarray, ax=None, title: str = 'Belief map') -> plt.Axes:
        """Plot a belief array (UNKNOWN cells in unknown_color)"""
        if ax is None:
            fig, ax = plt.subplots(figsize=self.config.figure_size)

        ax.imshow(belief.astype(np.int16) - UNKNOWN, cmap=self.belief_cmap,
                  vmin=0, vmax=len(Terrain), origin='upper', interpolation='nearest')
        self._style_axes(ax, title)
        return ax

    def plot_path(self, ax, path: Sequence[Tuple[int, int]],
                  color: Optional[str] = None, label: Optional[str] = 'Executed',
                  linewidth: float = 2.0, alpha: float = 0.8):
        """Plot a route of (x, y) cells on existing axes"""
        if not path or len(path) < 2:
            return

        path_arr = np.array(path)
        ax.plot(path_arr[:, 0], path_arr[:, 1],
                color=color or self.config.path_color, linewidth=linewidth,
                alpha=alpha, label=label)

    def plot_agent(self, ax, position: Tuple[int, int], radius: Optional[int] = None):
        """Mark the agent and, optionally, its square sensing window"""
        ax.plot(position[0], position[1], 'o', color='magenta', markersize=10,
                markeredgecolor='white', markeredgewidth=2, label='Agent', zorder=10)
        if radius is not None:
            ax.add_patch(plt.Rectangle(
                (position[0] - radius - 0.5, position[1] - radius - 0.5),
                2 * radius + 1, 2 * radius + 1,
                fill=False, edgecolor='magenta', linestyle='--', linewidth=1.0
            ))

    def plot_chargers(self, ax, chargers: Sequence[Tuple[int, int]]):
        """Highlight known chargers"""
        if not chargers:
            return
        cells = np.array(chargers)
        ax.scatter(cells[:, 0], cells[:, 1], marker='s', s=80, facecolors='none',
                   edgecolors='darkorange', linewidths=2, label='Known chargers', zorder=9)

    def create_run_figure(self,
                          belief: Optional[np.ndarray] = None,
                          path: Optional[Sequence[Tuple[int, int]]] = None,
                          chargers: Sequence[Tuple[int, int]] = (),
                          position: Optional[Tuple[int, int]] = None,
                          radius: Optional[int] = None,
                          title: str = 'Run') -> plt.Figure:
        """
        Create ground truth / belief comparison figure.

        Args:
            belief: Belief array; only the truth panel is drawn if None
            path: Executed route
            chargers: Known chargers
            position: Current agent position
            radius: Sensing radius drawn around position
            title: Figure title

        Returns:
            Matplotlib figure
        """
        panels = 2 if belief is not None else 1
        fig, axes = plt.subplots(1, panels, figsize=self.config.figure_size, squeeze=False)

        ax_truth = axes[0, 0]
        self.plot_terrain(ax_truth)
        if path:
            self.plot_path(ax_truth, path)
        if position is not None:
            self.plot_agent(ax_truth, position, radius)

        if belief is not None:
            ax_belief = axes[0, 1]
            self.plot_belief(belief, ax_belief)
            if path:
                self.plot_path(ax_belief, path)
            self.plot_chargers(ax_belief, chargers)
            if position is not None:
                self.plot_agent(ax_belief, position, radius)

        handles, labels = axes[0, -1].get_legend_handles_labels()
        if handles:
            axes[0, -1].legend(loc='upper right', fontsize=8)

        fig.suptitle(title, fontsize=14, fontweight='bold')
        return fig

    def save_figure(self, fig: plt.Figure, filename: Union[str, Path], dpi: Optional[int] = None):
        """Save figure to file"""
        Path(filename).parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(filename, dpi=dpi or self.config.dpi,
                    bbox_inches='tight', facecolor='white')
        plt.close(fig)

    def _style_axes(self, ax, title: str):
        height, width = self.terrain.shape
        ax.set_xticks(np.arange(-0.5, width, 1), minor=True)
        ax.set_yticks(np.arange(-0.5, height, 1), minor=True)
        ax.grid(which='minor', color='gray', linewidth=0.3)
        ax.tick_params(which='minor', length=0)
        ax.set_xlabel('X (cells)')
        ax.set_ylabel('Y (cells)')
        ax.set_title(title)


def create_frame_callback(visualizer: TerrainVisualizer, agent_id: str,
                          output_dir: Union[str, Path], every: int = 1):
    """
    Create a Simulation callback that saves one figure every N turns.

    Usage:
        callback = create_frame_callback(vis, 'Robby', 'frames/')
        sim.run(callback)
    """
    output_dir = Path(output_dir)
    saved: List[Path] = []

    def callback(sim):
        turn = sim.env.turn()
        if turn % every:
            return
        controller = sim.controllers[agent_id]
        belief = controller.belief
        fig = visualizer.create_run_figure(
            belief=belief.as_array() if belief is not None else None,
            path=controller.stats.executed_path,
            chargers=controller.known_chargers,
            position=controller.position,
            radius=controller.radius,
            title=f'Turn {turn} - {controller.state.name} - energy {controller.energy}'
        )
        frame = output_dir / f'frame_{turn:05d}.png'
        visualizer.save_figure(fig, frame)
        saved.append(frame)

    callback.saved_frames = saved
    return callback

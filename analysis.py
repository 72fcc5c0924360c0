"""Эксперименты: реальный FPR и насыщение фильтра.

    python analysis.py                          # n=1000, p=0.01
    python analysis.py --elements 5000 --rate 0.001 --trials 20
"""

import argparse
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np
import matplotlib.pyplot as plt
from scipy import stats
from tqdm import tqdm

from bloom_filter import BloomFilter

logger = logging.getLogger(__name__)


def generate_dataset(size: int, seed: Optional[int] = None) -> Tuple[List[str], List[str]]:
    """Непересекающиеся ключи: train для вставки, test для запросов.

    Префиксы train_/test_ различаются, так что test-ключи точно не добавлены.
    """
    salt = np.random.randint(0, 10**6) if seed is None else seed
    train = [f"train_{salt}_{i}" for i in range(size)]
    test = [f"test_{salt}_{i}" for i in range(size)]
    return train, test


def observed_fpr(bf: BloomFilter, absent: Sequence[str]) -> float:
    return sum(1 for item in absent if item in bf) / len(absent)


def measure_fpr(expected_elements: int, false_positive_rate: float,
                trials: int = 10, queries: Optional[int] = None,
                progress: bool = False) -> np.ndarray:
    """FPR по trials независимым фильтрам, заполненным до expected_elements."""
    queries = queries or expected_elements
    results = np.zeros(trials)
    for t in tqdm(range(trials), desc="trials", disable=not progress):
        train, _ = generate_dataset(expected_elements)
        _, test = generate_dataset(queries)
        bf = BloomFilter(expected_elements, false_positive_rate).update(train)
        results[t] = observed_fpr(bf, test)
    return results


def fpr_significance(observed: np.ndarray, target: float) -> Tuple[float, float]:
    """t-test: отличается ли средний FPR от целевого. Возвращает (t, p)."""
    if len(observed) < 2 or np.allclose(observed, observed[0]):
        return 0.0, 1.0
    res = stats.ttest_1samp(observed, target)
    return float(res.statistic), float(res.pvalue)


def saturation_curve(expected_elements: int, false_positive_rate: float,
                     steps: int = 10) -> Tuple[np.ndarray, np.ndarray]:
    """Насыщение после каждой порции ключей (кол-во ключей, saturation)."""
    bf = BloomFilter(expected_elements, false_positive_rate)
    train, _ = generate_dataset(expected_elements)
    batches = np.array_split(np.array(train), steps)
    counts, saturations = [], []
    added = 0
    for batch in batches:
        bf.update(str(item) for item in batch)
        added += len(batch)
        counts.append(added)
        saturations.append(bf.saturation())
    return np.array(counts), np.array(saturations)


def plot_fpr(rates: Sequence[float], observed: Sequence[float], path) -> Path:
    """Реальный FPR против целевого (лог-шкалы)."""
    path = Path(path)
    fig, ax = plt.subplots(figsize=(8, 6))
    ax.plot(rates, observed, 'o-', color='steelblue', label='Реальный')
    ax.plot(rates, rates, 's--', color='gray', label='Целевой', alpha=0.7)
    ax.set_xscale('log')
    ax.set_yscale('symlog', linthresh=min(rates))
    ax.set_xlabel("target false positive rate")
    ax.set_ylabel("observed FPR")
    ax.set_title("Bloom Filter: FPR vs target")
    ax.legend()
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)
    return path


def plot_saturation(counts: np.ndarray, saturations: np.ndarray, path) -> Path:
    path = Path(path)
    fig, ax = plt.subplots(figsize=(8, 6))
    ax.plot(counts, saturations, 'o-', color='tomato')
    ax.axhline(0.5, color='black', linestyle=':', alpha=0.5, label='optimal fill 0.5')
    ax.set_xlabel("added keys")
    ax.set_ylabel("saturation")
    ax.set_title("Saturation vs inserted keys")
    ax.legend()
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)
    return path


def main(argv: Optional[Sequence[str]] = None) -> int:
    p = argparse.ArgumentParser(description="Bloom filter FPR / saturation analysis")
    p.add_argument("--elements", type=int,   default=1000, help="Ожидаемое число элементов")
    p.add_argument("--rate",     type=float, default=0.01, help="Целевой FPR")
    p.add_argument("--trials",   type=int,   default=10,   help="Число фильтров")
    p.add_argument("--queries",  type=int,   default=None, help="Запросов отсутствующих ключей")
    p.add_argument("--out",      type=Path,  default=Path("."), help="Куда сохранять графики")
    p.add_argument("--log-level", default="INFO")
    args = p.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format='%(asctime)s - %(levelname)s - %(message)s',
    )

    observed = measure_fpr(args.elements, args.rate, args.trials, args.queries, progress=True)
    t, pvalue = fpr_significance(observed, args.rate)
    logger.info("target FPR=%g observed mean=%g std=%g (t=%.3f, p=%.4f)",
                args.rate, observed.mean(), observed.std(), t, pvalue)

    rates = [r for r in (args.rate * 10, args.rate, args.rate / 10) if r < 1]
    means = [measure_fpr(args.elements, r, max(1, args.trials // 2), args.queries).mean()
             for r in rates]
    args.out.mkdir(parents=True, exist_ok=True)
    logger.info("saved %s", plot_fpr(rates, means, args.out / "bloom_fpr.png"))

    counts, saturations = saturation_curve(args.elements, args.rate)
    logger.info("final saturation=%.4f", saturations[-1])
    logger.info("saved %s", plot_saturation(counts, saturations, args.out / "bloom_saturation.png"))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

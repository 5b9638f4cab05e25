"""Offline active learning run where the CSV's own labels play the human annotator."""
import os
import json
import uuid
import logging
import argparse
from datetime import datetime
from typing import Dict, List, Optional

from sklearn.metrics import accuracy_score
from sklearn.model_selection import train_test_split

from al_selector import config
from al_selector.active_learning import ActiveLearning
from al_selector.data.loader import load_patches, split_seed_and_pool
from al_selector.errors import InsufficientPoolError
from al_selector.model.svm import SVMClassifier
from al_selector.patch import Patch

logger = logging.getLogger(__name__)


def _evaluate(session: ActiveLearning, held_out: List[Patch], truth: Dict) -> float:
    queries = [Patch(id=p.id, features=p.features) for p in held_out]
    session.classify_batch(queries)
    return float(accuracy_score([truth[p.id] for p in queries], [p.label for p in queries]))


def run_simulation(csv_path: str, rounds: int = 5, batch_size: int = 5, seed_per_class: int = 3,
                   test_fraction: float = 0.2, output_dir: Optional[str] = None,
                   save_model: bool = False, random_state: Optional[int] = None) -> Dict:
    random_state = config.RANDOM_STATE if random_state is None else random_state
    patches, encoder = load_patches(csv_path)
    labeled = [p for p in patches if p.label is not None]
    if not labeled:
        raise ValueError(f"No labeled rows in {csv_path}; the simulation needs labels to act as the oracle")
    truth = {p.id: p.label for p in labeled}

    train_part, held_out = train_test_split(
        labeled, test_size=test_fraction, random_state=random_state,
        stratify=[p.label for p in labeled],
    )
    seed, pool = split_seed_and_pool(train_part, seed_per_class=seed_per_class, random_state=random_state)
    for p in pool:
        p.label = None

    classifier = SVMClassifier(random_state=random_state)
    session = ActiveLearning(classifier=classifier, random_state=random_state)
    session.set_seed_items(seed)
    session.add_unlabeled_items(pool)

    history = [{'round': 0, 'training_size': len(session.training_pool),
                'accuracy': _evaluate(session, held_out, truth)}]
    logger.info(f"Round 0: training={history[0]['training_size']} accuracy={history[0]['accuracy']:.4f}")

    for r in range(1, rounds + 1):
        try:
            batch = session.select_batch(batch_size)
        except InsufficientPoolError as e:
            logger.warning(f"Stopping after {r - 1} round(s): {e}")
            break
        for p in batch:
            p.label = truth[p.id]
        session.submit_labels(batch)
        acc = _evaluate(session, held_out, truth)
        history.append({
            'round': r,
            'training_size': len(session.training_pool),
            'accuracy': acc,
            'selected': [p.to_dict() for p in batch],
        })
        logger.info(f"Round {r}: training={len(session.training_pool)} accuracy={acc:.4f}")

    metrics = {
        'data': {'path': csv_path, 'patches': len(patches), 'held_out': len(held_out)},
        'session': session.summary(),
        'classifier': {'kernel': classifier.kernel, 'C': classifier.C, 'gamma': classifier.gamma},
        'classes': list(encoder.classes_) if encoder is not None else sorted({int(v) for v in truth.values()}),
        'history': history,
    }

    if output_dir:
        run_id = datetime.now().strftime("%Y%m%d%H%M%S") + f"_{uuid.uuid4().hex[:8]}"
        run_dir = os.path.join(output_dir, "runs", run_id)
        os.makedirs(run_dir, exist_ok=True)
        with open(os.path.join(run_dir, 'metrics.json'), 'w', encoding='utf-8') as f:
            json.dump(metrics, f, indent=2, default=str)
        if save_model:
            classifier.save(os.path.join(run_dir, 'svm_classifier.pkl'))
        metrics['run_dir'] = run_dir
        logger.info(f"Run artifacts written to {run_dir}")
    return metrics


def main(argv=None):
    parser = argparse.ArgumentParser(description="Simulate an active learning session on a labeled CSV")
    parser.add_argument('--data', required=True, help='CSV with an id column, a label column and numeric features')
    parser.add_argument('--rounds', type=int, default=5)
    parser.add_argument('--batch-size', type=int, default=5)
    parser.add_argument('--seed-per-class', type=int, default=3)
    parser.add_argument('--test-fraction', type=float, default=0.2)
    parser.add_argument('--output-dir', default=config.MODEL_DIR)
    parser.add_argument('--save-model', action='store_true')
    args = parser.parse_args(argv)

    logging.basicConfig(level=config.LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    try:
        run_simulation(
            args.data, rounds=args.rounds, batch_size=args.batch_size,
            seed_per_class=args.seed_per_class, test_fraction=args.test_fraction,
            output_dir=args.output_dir, save_model=args.save_model,
        )
    except Exception as e:
        logger.error(f"Simulation failed: {e}", exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

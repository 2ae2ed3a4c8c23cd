import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict

from config.config import SystemConfig, load_config
from utils.utils import (
    PerformanceMonitor,
    create_performance_report,
    save_results,
    setup_logging,
)
from zk.errors import ZKError
from zk.merkle import SparseMerkleTree
from zk.vote_validator import VoteValidator, compute_leaf, compute_nullifier
from zk.witness import build_witness, load_witness, save_witness

logger = logging.getLogger(__name__)


def run_demo(config: SystemConfig, secret: int = 7, poll_id: int = 42,
             max_options: int = 3, vote_choice: int = 1, leaf_index: int = 5) -> Dict[str, Any]:
    """End-to-end run: register one voter, vote, then tamper with the inputs"""
    validator = VoteValidator(config.circuit)

    print("=" * 80)
    print("ANONYMOUS POLL - VOTE PREDICATE DEMONSTRATION")
    print("=" * 80)

    tree = SparseMerkleTree(config.circuit.tree_depth)
    tree.insert(leaf_index, compute_leaf(secret))
    print(f"\nEligible-voter tree depth {tree.depth}, voter leaf at index {leaf_index}")
    print(f"Root: {hex(tree.root)}")

    honest = build_witness(secret, tree, leaf_index, poll_id, vote_choice, max_options)
    scenarios = {
        'honest_vote': honest,
        'choice_out_of_range': honest.replace(vote_choice=max_options + 2),
        'foreign_nullifier': honest.replace(nullifier=compute_nullifier(secret, poll_id + 1)),
        'wrong_root': honest.replace(merkle_root=tree.root ^ 1),
    }

    results = {}
    for name, inputs in scenarios.items():
        result = validator.evaluate(inputs)
        failed = [v.value for v in result.violations]
        results[name] = {'valid': result.valid, 'violations': failed}
        status = "HOLDS" if result.valid else f"FAILS {failed}"
        print(f"  {name:24s} {status}")

    print("=" * 80)
    return results


def run_check(config: SystemConfig, witness_path: Path) -> bool:
    inputs = load_witness(witness_path)
    result = VoteValidator(config.circuit).evaluate(inputs)

    if result.valid:
        print(f"Predicate holds for {witness_path}")
    else:
        print(f"Predicate fails for {witness_path}:")
        for violation in result.violations:
            print(f"  - {violation.value}")
    return result.valid


def run_witness(config: SystemConfig, args) -> Path:
    tree = SparseMerkleTree(config.circuit.tree_depth)
    tree.insert(args.leaf_index, compute_leaf(args.secret))

    inputs = build_witness(args.secret, tree, args.leaf_index, args.poll_id,
                           args.vote_choice, args.max_options)
    path = save_witness(inputs, args.output)
    print(f"Witness written to {path}")
    print(f"Public inputs: {[str(x) for x in inputs.public_inputs()]}")
    return path


def run_benchmark(config: SystemConfig, iterations: int) -> Dict[str, Any]:
    monitor = PerformanceMonitor()
    validator = VoteValidator(config.circuit)

    with monitor.start_operation("build_tree"):
        tree = SparseMerkleTree(config.circuit.tree_depth)
        tree.insert(0, compute_leaf(7))

    inputs = build_witness(7, tree, 0, 42, 1, 3)
    for _ in range(iterations):
        with monitor.start_operation("evaluate_predicate"):
            validator.evaluate(inputs)

    print(create_performance_report(monitor))

    summary = monitor.get_summary()
    save_results({'benchmark': summary, 'iterations': iterations},
                 config.results_dir / "predicate_benchmark.json")
    return summary


def main():
    parser = argparse.ArgumentParser(
        description='Anonymous poll vote predicate')
    parser.add_argument('--config', type=str,
                        default='config.yaml', help='Config file path')
    parser.add_argument(
        '--mode', choices=['demo', 'check', 'witness', 'benchmark'], default='demo')
    parser.add_argument('--witness', type=str, default='witness.json',
                        help='Witness file to check')
    parser.add_argument('--output', type=str, default='witness.json',
                        help='Where to write a generated witness')
    parser.add_argument('--secret', type=int, default=7)
    parser.add_argument('--poll-id', type=int, default=42)
    parser.add_argument('--vote-choice', type=int, default=1)
    parser.add_argument('--max-options', type=int, default=3)
    parser.add_argument('--leaf-index', type=int, default=0)
    parser.add_argument('--iterations', type=int, default=20,
                        help='Predicate evaluations to time')

    args = parser.parse_args()

    config = load_config(Path(args.config))
    setup_logging(config.log_level, config.log_dir / "anonymous_poll.log")

    try:
        if args.mode == 'demo':
            results = run_demo(config)
            sys.exit(0 if results['honest_vote']['valid'] else 1)
        elif args.mode == 'check':
            sys.exit(0 if run_check(config, Path(args.witness)) else 1)
        elif args.mode == 'witness':
            run_witness(config, args)
        elif args.mode == 'benchmark':
            run_benchmark(config, args.iterations)
    except (ZKError, IndexError, OSError, ValueError) as e:
        logger.error(f"{args.mode} failed: {e}")
        sys.exit(2)


if __name__ == "__main__":
    main()

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from config.config import ProtocolConfig, SystemConfig, load_config
from core.exceptions import ProtocolError
from simulation.simulation import ELECTION_SETS, Simulation
from simulation.simulators import VoteProcessError
from utils.utils import create_performance_report, format_duration, save_results, setup_logging

logger = logging.getLogger(__name__)


async def run_simulation(config: SystemConfig) -> bool:
    protocol = config.protocol_config
    simulation_config = config.simulation_config

    print("=" * 80)
    print("VERIFIABLE REMOTE VOTING - ELECTION SIMULATION")
    print("=" * 80)
    print(f"   Security level: {protocol.security_level}")
    print(f"   Authorities: {protocol.num_authorities}")
    print(f"   Election set: {simulation_config.election_set}")
    print(f"   Voters: {simulation_config.num_voters}")

    try:
        simulation = Simulation(protocol, simulation_config.election_set, simulation_config.num_voters)
        results = await simulation.run()
    except (ProtocolError, VoteProcessError) as e:
        logger.error(f"Simulation failed: {e}")
        print(f"\n Simulation failed: {e}")
        return False

    print("\n" + "=" * 40)
    print("ELECTION RESULTS")
    print("=" * 40)
    for i, (count, expected) in enumerate(zip(results['tally'], results['expected_tally'])):
        print(f"  Candidate {i + 1}: {count} votes (expected {expected})")
    print(f"\nTotal time: {format_duration(results['total_duration'])}")

    success = results['verification']['tally_matches_votes']
    print(f"Tally matches the cast votes: {'PASSED' if success else 'FAILED'}")

    if config.enable_benchmarking:
        report_path = config.results_dir / "simulation_report.json"
        save_results(results, report_path)

        perf_report = create_performance_report(simulation.monitor)
        perf_path = config.results_dir / "performance_report.txt"
        with open(perf_path, "w") as f:
            f.write(perf_report)

        print(f"\nFull results saved to: {report_path}")
        print(f"Performance report: {perf_path}")

    return success


def main():
    parser = argparse.ArgumentParser(
        description='Verifiable remote voting protocol simulation')
    parser.add_argument('--level', type=int, choices=[0, 1, 2],
                        help='Security level (overrides the config file)')
    parser.add_argument('--election-set', choices=sorted(ELECTION_SETS),
                        help='Election set template (overrides the config file)')
    parser.add_argument('--voters', type=int,
                        help='Number of voters (overrides the config file)')
    parser.add_argument('--authorities', type=int,
                        help='Number of authorities (overrides the config file)')
    parser.add_argument('--config', type=str,
                        default='config.yaml', help='Config file path')
    parser.add_argument('--log-level', type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], help='Logging level')

    args = parser.parse_args()

    config = load_config(Path(args.config))
    protocol = config.protocol_config
    config.protocol_config = ProtocolConfig(
        security_level=args.level if args.level is not None else protocol.security_level,
        num_authorities=args.authorities if args.authorities is not None else protocol.num_authorities,
        hash_algorithm=protocol.hash_algorithm,
        n_max=protocol.n_max,
        return_code_length=protocol.return_code_length,
        finalization_code_length=protocol.finalization_code_length,
        alphabet=protocol.alphabet
    )
    if args.election_set is not None:
        config.simulation_config.election_set = args.election_set
    if args.voters is not None:
        config.simulation_config.num_voters = args.voters

    setup_logging(args.log_level or config.log_level, log_dir=config.log_dir)

    success = asyncio.run(run_simulation(config))
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()

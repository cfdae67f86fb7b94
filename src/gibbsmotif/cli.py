import argparse
import json
import logging
import os
import sys

from gibbsmotif import __version__
from gibbsmotif.api import find_motif
from gibbsmotif.io import write_meme, write_profile
from gibbsmotif.models import background_registry, quality_registry
from gibbsmotif.sampler import MIN_MOTIF_LEN, MIN_PATIENCE
from gibbsmotif.significance import (
    chance_occurrence_probability,
    minimum_suggested_sequence_length,
    nontarget_motif_probability,
)

DEFAULT_K = 3
DEFAULT_MOTIF_LEN = 7
DEFAULT_NSAMPLES = 100


def setup_logging(verbose: bool):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    if verbose:
        logging.getLogger("numba").setLevel(logging.WARNING)


def create_arg_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        description="gibbsmotif: find over-represented motifs with a Gibbs sampler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
 Examples:
   # Sample a 7-mer motif with 100 restarts, profile printed to stdout
   gibbsmotif sample -i sequences.fasta -l 7 -k 3 -n 100

   # Reproducible run on 4 cores, profile written to a file
   gibbsmotif sample -i sequences.fasta -o motif.profile.tab \\
     --seed 42 --jobs 4 --metric consensus

   # Minimum sequence length for 400 sequences and a 6-mer (p <= 0.01)
   gibbsmotif significance --p-threshold 0.01 --num-sequences 400 \\
     --motif-len 6 --alphabet-size 4 --seq-length 18314
         """,
    )
    parser.add_argument("--version", action="version", version=f"gibbsmotif {__version__}")

    subparsers = parser.add_subparsers(dest="mode", help="Operation mode", required=True)

    sample_parser = subparsers.add_parser("sample", help="Search sequences for a shared motif.")

    sample_io_group = sample_parser.add_argument_group("Input/Output Options")
    sample_io_group.add_argument(
        "-i",
        "--input",
        default="-",
        help=(
            "FASTA file with equal-length sequences. Use '-' to read standard input. (default: %(default)s)"
        ),
    )
    sample_io_group.add_argument(
        "-o",
        "--output",
        default="-",
        help="Path of the profile table. Use '-' for standard output. (default: %(default)s)",
    )
    sample_io_group.add_argument(
        "--meme",
        help="Also export the profile in MEME minimal format to this path.",
    )
    sample_io_group.add_argument(
        "--counts",
        action="store_true",
        help="Print raw pseudocounted counts instead of frequencies in the profile table.",
    )

    sampling_group = sample_parser.add_argument_group("Sampling Options")
    sampling_group.add_argument(
        "-k",
        "--kiter",
        dest="k",
        type=int,
        default=DEFAULT_K,
        help=(
            f"Number of consecutive non-improving steps before a chain converges "
            f"(minimum {MIN_PATIENCE}). (default: %(default)s)"
        ),
    )
    sampling_group.add_argument(
        "-l",
        "--len",
        dest="motif_len",
        type=int,
        default=DEFAULT_MOTIF_LEN,
        help=f"Length of the motif to sample for (minimum {MIN_MOTIF_LEN}). (default: %(default)s)",
    )
    sampling_group.add_argument(
        "-n",
        "--nrepet",
        dest="nsamples",
        type=int,
        default=DEFAULT_NSAMPLES,
        help="Number of restarts from a random starting point. (default: %(default)s)",
    )
    sampling_group.add_argument(
        "--max-iterations",
        type=int,
        default=10000,
        help="Hard cap on the number of steps of a single chain. (default: %(default)s)",
    )
    sampling_group.add_argument(
        "--metric",
        choices=quality_registry.available(),
        default="information",
        help="Motif quality metric used to rank configurations. (default: %(default)s)",
    )
    sampling_group.add_argument(
        "--background",
        choices=background_registry.available(),
        default="uniform",
        help="Background model for likelihood ratios. (default: %(default)s)",
    )
    sampling_group.add_argument(
        "--alphabet",
        default="ACGT",
        help="Ordered sequence alphabet. (default: %(default)s)",
    )

    sample_technical_group = sample_parser.add_argument_group("Technical Options")
    sample_technical_group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging for detailed execution tracking.",
    )
    sample_technical_group.add_argument(
        "--seed",
        type=int,
        help="Root random seed for reproducible results.",
    )
    sample_technical_group.add_argument(
        "--jobs",
        type=int,
        default=1,
        help="Number of parallel jobs for restarts. Set to -1 to use all available CPU cores. (default: %(default)s)",
    )

    significance_parser = subparsers.add_parser(
        "significance", help="Report chance-occurrence statistics for a motif length and sequence set size."
    )
    significance_group = significance_parser.add_argument_group("Significance Options")
    significance_group.add_argument(
        "--p-threshold",
        type=float,
        default=0.01,
        help="Tolerated probability that a random motif is missing from some sequence. (default: %(default)s)",
    )
    significance_group.add_argument(
        "--num-sequences",
        type=int,
        default=400,
        help="Number of sequences. (default: %(default)s)",
    )
    significance_group.add_argument(
        "--motif-len",
        type=int,
        default=6,
        help="Motif length. (default: %(default)s)",
    )
    significance_group.add_argument(
        "--alphabet-size",
        type=int,
        default=4,
        help="Alphabet size. (default: %(default)s)",
    )
    significance_group.add_argument(
        "--seq-length",
        type=int,
        help="If given, also report probabilities for sequences of this length.",
    )
    significance_technical_group = significance_parser.add_argument_group("Technical Options")
    significance_technical_group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging for detailed execution tracking.",
    )

    return parser


def validate_inputs(args) -> None:
    """Validate input files and replace out-of-range sampling parameters with defaults."""
    logger = logging.getLogger(__name__)
    if args.mode != "sample":
        return

    if args.input != "-" and not os.path.exists(args.input):
        logger.error(f"FASTA file not found: {args.input}")
        sys.exit(1)

    if args.k < MIN_PATIENCE:
        logger.warning(f"k={args.k} is below {MIN_PATIENCE}, using {DEFAULT_K}")
        args.k = DEFAULT_K
    if args.motif_len < MIN_MOTIF_LEN:
        logger.warning(f"Motif length {args.motif_len} is below {MIN_MOTIF_LEN}, using {DEFAULT_MOTIF_LEN}")
        args.motif_len = DEFAULT_MOTIF_LEN
    if args.nsamples < 1:
        logger.warning(f"Number of restarts {args.nsamples} is below 1, using {DEFAULT_NSAMPLES}")
        args.nsamples = DEFAULT_NSAMPLES


def run_sample(args) -> None:
    """Run the motif search and write its profile."""
    result = find_motif(
        args.input,
        k=args.k,
        motif_len=args.motif_len,
        nsamples=args.nsamples,
        alphabet=args.alphabet.upper(),
        max_iterations=args.max_iterations,
        metric=args.metric,
        background=args.background,
        seed=args.seed,
        n_jobs=args.jobs,
    )

    values = "counts" if args.counts else "frequency"
    if args.output == "-":
        write_profile(result, values=values)
    else:
        print(f"Best motif found: {result.motif}\tScore: {result.score:.6f}")
        write_profile(result, args.output, values=values)

    if args.meme:
        write_meme(result, args.meme)


def run_significance(args) -> dict:
    """Compute the significance report as a dictionary."""
    report = {
        "p_threshold": args.p_threshold,
        "num_sequences": args.num_sequences,
        "motif_len": args.motif_len,
        "alphabet_size": args.alphabet_size,
        "minimum_sequence_length": minimum_suggested_sequence_length(
            args.p_threshold, args.num_sequences, args.motif_len, args.alphabet_size
        ),
    }
    if args.seq_length is not None:
        report["seq_length"] = args.seq_length
        report["nontarget_probability"] = nontarget_motif_probability(
            args.num_sequences, args.motif_len, args.seq_length, args.alphabet_size
        )
        report["chance_occurrence_probability"] = chance_occurrence_probability(
            args.num_sequences, args.motif_len, args.seq_length, args.alphabet_size
        )
    return report


def main_cli():
    """Main CLI entry point."""
    parser = create_arg_parser()

    if len(sys.argv) == 1:
        parser.print_help(sys.stderr)
        sys.exit(1)

    args = parser.parse_args()

    setup_logging(args.verbose)

    validate_inputs(args)

    if args.verbose:
        logger = logging.getLogger(__name__)
        logger.info("=" * 60)
        logger.info(f"gibbsmotif {__version__} - {args.mode.capitalize()} Mode")
        logger.info("=" * 60)
        if args.mode == "sample":
            logger.info(f"Sequences: {args.input}")
            logger.info(f"Motif length: {args.motif_len}, k: {args.k}, restarts: {args.nsamples}")
        logger.info("=" * 60)

    try:
        if args.mode == "sample":
            run_sample(args)
        else:
            print(json.dumps(run_significance(args)))

    except Exception as e:
        print(f"ERROR: {args.mode.capitalize()} failed: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main_cli()

"""
SOFA File Information

Prints what a SOFA file contains: validity, global attributes,
dimensions, receiver and emitter positions, and for FreeFieldDirectivityTF
files the frequency values and complex data.

Usage:
    sofainfo path/to/file.sofa
"""

import sys
import argparse
import logging
from typing import List, Optional, TextIO

from .config import ReaderConfig, default_config, RECEIVER_POSITION, EMITTER_POSITION, LONG_NAME_ATTRIBUTE
from .directivity import FreeFieldDirectivityTF
from .exceptions import SOFAError
from .file import SOFAFile
from .indexing import iter_indices
from .utils import FlatBuffer

# Set up logging
logger = logging.getLogger(__name__)

SEPARATION_LINE = '_' * 100


def _pad(name: str, config: ReaderConfig) -> str:
    return name.ljust(config.padding)


def _format_values(values: FlatBuffer, shape, config: ReaderConfig) -> str:
    return ' '.join(f"{values[offset]:.{config.precision}g}" for _, offset in iter_indices(shape))


def print_positional(sofa_file: SOFAFile, name: str, output: TextIO,
                     config: ReaderConfig = default_config) -> None:
    """Print a positional variable's type, units and values in storage order."""
    variable = sofa_file.get_positional(name)
    output.write(f"{_pad(name + ':Type', config)} = {variable.coordinates.value}\n")
    output.write(f"{_pad(name + ':Units', config)} = {variable.units.value}\n")
    output.write(f"{_pad(name, config)} = {_format_values(variable.values, variable.shape, config)}\n")


def print_attributes(sofa_file: SOFAFile, output: TextIO, config: ReaderConfig = default_config) -> None:
    for name, value in sofa_file.get_global_attributes().items():
        output.write(f"{_pad(name, config)} = {value}\n")


def print_dimensions(sofa_file: SOFAFile, output: TextIO, config: ReaderConfig = default_config) -> None:
    for name, size in sofa_file.get_dimensions().items():
        output.write(f"{_pad(name, config)} = {size}\n")


def print_directivity(directivity: FreeFieldDirectivityTF, output: TextIO,
                      config: ReaderConfig = default_config) -> None:
    """Print receivers, emitters, frequencies and Data.Real / Data.Imag."""
    dims = directivity.get_governing_dimensions()

    output.write('\n')
    print_positional(directivity, RECEIVER_POSITION, output, config)
    output.write('\n')
    print_positional(directivity, EMITTER_POSITION, output, config)

    frequency = directivity.get_frequency_descriptor()
    output.write('\n')
    output.write(f'Frequency Values ("{frequency.name}"):\n')
    if LONG_NAME_ATTRIBUTE in directivity.get_variable_attribute_names(frequency.name):
        long_name = directivity.get_variable_attribute_as_string(frequency.name, LONG_NAME_ATTRIBUTE)
        output.write(f"{_pad(frequency.name + ':LongName', config)} = {long_name}\n")
    if frequency.units is not None:
        output.write(f"{_pad(frequency.name + ':Units', config)} = {frequency.units.value}\n")
    output.write(_format_values(directivity.get_frequency_values(), (dims.N,), config) + '\n')

    shape = (dims.M, dims.R, dims.N)
    for label, values in (('Data.Real', directivity.get_data_real()),
                          ('Data.Imag', directivity.get_data_imag())):
        output.write('\n')
        output.write(f"{label}: [{dims.M}x{dims.R}x{dims.N}]\n")
        output.write(_format_values(values, shape, config) + '\n')


def print_file_info(path: str, output: TextIO = sys.stdout,
                    config: ReaderConfig = default_config) -> bool:
    """
    Print the information of a SOFA file.

    Args:
        path: Path to the SOFA file
        output: Stream to print to
        config: Reader configuration (padding and precision of the output)

    Returns:
        True if the file is a valid FreeFieldDirectivityTF file and its
        data was printed, False if it is not (after saying so)

    Raises:
        OpenError: If the file cannot be opened
    """
    with FreeFieldDirectivityTF.open(path, config=config) as directivity:
        # Generic view over the same handle, closed with `directivity`
        generic = SOFAFile(directivity.storage, config)
        if not generic.is_valid():
            output.write(f"{path} is not a valid SOFA file\n")
            return False
        output.write(f"{path} is a valid SOFA file\n")

        output.write(SEPARATION_LINE + '\n')
        print_attributes(directivity, output, config)
        output.write('\n')
        output.write(SEPARATION_LINE + '\n')
        print_dimensions(directivity, output, config)
        output.write('\n\n')

        name = FreeFieldDirectivityTF.CONVENTION_NAME
        if not directivity.is_valid():
            output.write(f"{path} is not a valid '{name}' file\n")
            return False
        output.write(f"{path} is a valid '{name}' file\n")

        print_directivity(directivity, output, config)
    return True


def main(argv: Optional[List[str]] = None) -> int:
    """Command line entry point."""
    parser = argparse.ArgumentParser(prog='sofainfo', description="Print information about SOFA files")
    parser.add_argument('filename', help='SOFA file to inspect')
    parser.add_argument('--config', help='Reader configuration (JSON)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log validation details')

    args = parser.parse_args(argv)

    # Configure logging
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(asctime)s - %(levelname)s - %(message)s')

    try:
        config = ReaderConfig.load(args.config) if args.config else default_config
        print_file_info(args.filename, sys.stdout, config)
    except (SOFAError, OSError, ValueError) as e:
        logger.error(f"sofainfo failed: {e}")
        print(f"exception occurred : {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

import os
import sys
import warnings
from pathlib import Path

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import tensorflow as tf

if _suppress_messages:
    try:
        tf.get_logger().setLevel("ERROR")
        for handler in tf.get_logger().handlers:
            handler.setLevel("ERROR")
    except Exception:
        pass

import PIL.Image

from newton import (
    DEFAULT_PALETTE_NAMES,
    REFERENCE_COEFFICIENTS,
    RenderConfig,
    RenderSession,
    palette_from_names,
)

gpus = tf.config.list_physical_devices('GPU')
if gpus:
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
        DEVICE = '/GPU:0'
    except RuntimeError as e:
        if VERBOSE:
            print(e)
        DEVICE = '/CPU:0'
else:
    DEVICE = '/CPU:0'

from argparse import ArgumentParser

DEFAULT_OUTPUT = "out.png"


def build_parser():
    parser = ArgumentParser(description="Render the Newton fractal of x^3 + 1.")

    parser.add_argument('--width', type=int,
                        dest='width', help='number of pixel columns in the output image',
                        metavar='WIDTH', default=512)

    parser.add_argument('--height', type=int,
                        dest='height', help='number of pixel rows in the output image',
                        metavar='HEIGHT', default=512)

    parser.add_argument('--x-min', type=float,
                        dest='x_min', help='real part at the left edge of the sampled region',
                        metavar='X_MIN', default=-1.0)

    parser.add_argument('--x-max', type=float,
                        dest='x_max', help='real part at the right edge of the sampled region',
                        metavar='X_MAX', default=1.0)

    parser.add_argument('--y-min', type=float,
                        dest='y_min', help='imaginary part at the top row of the sampled region',
                        metavar='Y_MIN', default=-1.0)

    parser.add_argument('--y-max', type=float,
                        dest='y_max', help='imaginary part past the bottom row of the sampled region',
                        metavar='Y_MAX', default=1.0)

    parser.add_argument('--max-iterations', type=int,
                        dest='max_iterations', help='number of small Newton corrections required before a point counts as settled',
                        metavar='MAX_ITERATIONS', default=30)

    parser.add_argument('--tolerance', type=float,
                        dest='tolerance', help='a Newton correction smaller than this counts toward --max-iterations',
                        metavar='TOLERANCE', default=0.5)

    parser.add_argument('--proximity', type=float,
                        dest='proximity', help='distance within which a converged point is treated as a known root',
                        metavar='PROXIMITY', default=0.01)

    parser.add_argument('--step-limit', type=int, default=None,
                        dest='step_limit', metavar='STEP_LIMIT',
                        help='Hard cap on Newton steps per pixel. Unlimited by default.')

    parser.add_argument('--backend', choices=['python', 'tensorflow'], default='python',
                        help='Iteration backend: "python" steps each pixel in turn, "tensorflow" iterates the whole grid at once.')

    parser.add_argument('--palette', type=str, default=','.join(DEFAULT_PALETTE_NAMES),
                        help='Comma separated matplotlib colour names or #RRGGBB values, one per root.')

    parser.add_argument('--output', dest='output', type=str, default=DEFAULT_OUTPUT,
                        help='Destination image file.')

    parser.add_argument('--format', type=str,
                        dest='format', help='file format for the output image. Can be any extension supported by Pillow. Default: "png".',
                        metavar='FORMAT', default='png')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def resolve_output_path(opt, parser: ArgumentParser) -> tuple[Path, str]:
    image_format = (getattr(opt, "format", "png") or "png").lower().lstrip(".")
    if not image_format:
        image_format = "png"

    output_arg = opt.output or DEFAULT_OUTPUT
    if str(output_arg).endswith(tuple(filter(None, {os.sep, os.altsep}))) or str(output_arg).endswith("/"):
        parser.error("--output must be a file path.")
    output_path = Path(output_arg).expanduser()
    if output_path.exists() and output_path.is_dir():
        parser.error("--output must point to a file, not a directory.")

    suffix = output_path.suffix
    expected_suffix = f".{image_format}"
    if suffix:
        if suffix.lower() != expected_suffix.lower():
            parser.error(f"--output extension {suffix} does not match --format {image_format}.")
    else:
        output_path = output_path.with_suffix(expected_suffix)
    return output_path.resolve(), image_format


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def write_single_image(image: PIL.Image.Image, output_path: Path, image_format: str) -> None:
    """Write a single image to ``output_path`` using the provided format."""

    pil_format = _pil_format_name(image_format)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=pil_format)


def build_config(opt, parser: ArgumentParser) -> RenderConfig:
    names = [name.strip() for name in opt.palette.split(",") if name.strip()]
    if not names:
        parser.error("--palette needs at least one colour.")
    try:
        palette = palette_from_names(names)
    except ValueError as exc:
        parser.error(f"Invalid --palette: {exc}")

    if opt.width <= 0 or opt.height <= 0:
        parser.error("--width and --height must be positive.")

    try:
        return RenderConfig(
            width=opt.width,
            height=opt.height,
            x_min=opt.x_min,
            x_max=opt.x_max,
            y_min=opt.y_min,
            y_max=opt.y_max,
            coefficients=REFERENCE_COEFFICIENTS,
            max_iterations=opt.max_iterations,
            tolerance=opt.tolerance,
            proximity=opt.proximity,
            palette=palette,
            step_limit=opt.step_limit,
        )
    except ValueError as exc:
        parser.error(str(exc))


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    log("TensorFlow version: %s" % tf.__version__)
    if gpus:
        log("GPU found, using %s" % gpus[0].name)
    else:
        log("No GPU found, using CPU")

    output_path, image_format = resolve_output_path(opt, parser)
    config = build_config(opt, parser)

    session = RenderSession(config)
    log(session.polynomial)
    log(session.derivative)

    def progress(row, total):
        print("row {0} out of {1}".format(row, total), end='\r')

    result = session.render(backend=opt.backend, device=DEVICE, progress=progress)
    print()

    log("found %d roots, max root index %d" % (len(result.roots), result.max_root_index))
    for index, root in enumerate(result.roots):
        log("  root %d: %s" % (index, root))

    write_single_image(PIL.Image.fromarray(result.colors), output_path, image_format)
    log("saved %s" % output_path)
    return result


if __name__ == '__main__':
    main()

import os
import sys
import argparse
import logging

try:
    from rich.console import Console
    from rich.table import Table
    from rich.panel import Panel
    from rich.logging import RichHandler
    from rich import box
except ImportError:
    print("Error: The 'rich' library is required for the CLI but not installed.", file=sys.stderr)
    print("Please install it with: pip install wavesummary[cli]", file=sys.stderr)
    sys.exit(1)

from wavesummarylib import __version__
from wavesummarylib.audio import format_duration
from wavesummarylib.config import default_config, merge_configs, load_preset, save_preset
from wavesummarylib.errors import WaveformError
from wavesummarylib.events import EventBus
from wavesummarylib.formats import DATA_EXTENSIONS
from wavesummarylib.pipeline import Pipeline

console = Console()


def positive_int(value):
    ivalue = int(value)
    if ivalue <= 0:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return ivalue


def zoom_value(value):
    if value == "auto":
        return value
    ivalue = int(value)
    if ivalue < 2:
        raise argparse.ArgumentTypeError("must be 'auto' or an integer >= 2")
    return ivalue


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        description="Generate waveform summary data from audio, or convert "
                    "summary data between .dat, .json and .txt",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument("--version", action="version",
                        version=f"wavesummary {__version__}")

    parser.add_argument("input", type=str,
                        help="Input audio file (.wav, .flac, .ogg, .mp3, ...) or summary data (.dat, .json)")
    parser.add_argument("output", type=str,
                        help="Output summary data file (.dat, .json, .txt)")

    # Resolution (only one of zoom / pixels-per-second / end)
    parser.add_argument("-z", "--zoom", type=zoom_value, default=None,
                        help="Samples per pixel, or 'auto' to fit the whole input into --width pixels (default 256)")
    parser.add_argument("--pixels-per-second", type=positive_int, default=None,
                        help="Output points per second of audio")
    parser.add_argument("-s", "--start", type=float, default=None,
                        help="Start time (seconds), used with --end")
    parser.add_argument("-e", "--end", type=float, default=None,
                        help="End time (seconds); fits start..end into --width pixels")
    parser.add_argument("-w", "--width", type=positive_int, default=None,
                        help="Width in pixels for --end and --zoom auto (default 800)")

    # Output
    parser.add_argument("-b", "--bits", type=int, choices=[8, 16], default=None,
                        help="Output resolution (default: 16, or the input's for conversions)")
    parser.add_argument("--file-version", type=int, choices=[1, 2], default=None,
                        help="1: one file per channel, 2: channels interleaved in one file (default 1)")
    parser.add_argument("--split-channels", action="store_true",
                        help="Keep channels separate instead of mixing to mono")
    parser.add_argument("--block-size", type=positive_int, default=None,
                        help="Frames decoded per block (default 4096)")

    # Presets
    parser.add_argument("--preset", type=str, default=None,
                        help="Load options from a JSON preset file")
    parser.add_argument("--save-preset", type=str, default=None,
                        help="Save the effective options to a JSON preset file")

    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log progress details")

    return parser.parse_args(argv)


def build_config(args):
    """Defaults, then preset, then explicit command line options."""
    config = default_config()
    if args.preset:
        config = merge_configs(config, load_preset(args.preset))
    cli_overrides = {
        "samples_per_pixel": args.zoom,
        "pixels_per_second": args.pixels_per_second,
        "start": args.start,
        "end": args.end,
        "width": args.width,
        "bits": args.bits,
        "file_version": args.file_version,
        "block_size": args.block_size,
    }
    if args.split_channels:
        cli_overrides["mono"] = False
    return merge_configs(config, cli_overrides)


def print_buffer_summary(buffer):
    table = Table(box=box.ROUNDED, title="Summary Data")
    table.add_column("Channel", style="cyan", justify="right")
    table.add_column("Points", justify="right")
    table.add_column("Min", justify="right")
    table.add_column("Max", justify="right")

    for chan in range(buffer.num_channels):
        data = buffer.channel_data(chan)
        if data.shape[0]:
            lo = str(int(data[:, 0].min()))
            hi = str(int(data[:, 1].max()))
        else:
            lo = hi = "—"
        table.add_row(str(chan), str(data.shape[0]), lo, hi)

    console.print(table)
    frames = buffer.size() * buffer.samples_per_pixel
    console.print(
        f"[dim]{buffer.sample_rate} Hz | {buffer.samples_per_pixel} samples/pixel | "
        f"{buffer.bits} bits | {format_duration(frames, buffer.sample_rate)}[/]"
    )


def run_cli(argv=None):
    args = parse_arguments(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )

    try:
        config = build_config(args)
    except WaveformError as e:
        console.print(f"[bold red]Error:[/] {e}")
        return 1

    if args.save_preset:
        save_preset(config, args.save_preset)
        console.print(f"[dim]Preset saved to: {args.save_preset}[/]")

    zoom = config.get("samples_per_pixel")
    if config.get("end") is not None:
        zoom_label = f"{config.get('start') or 0.0:g}s..{config['end']:g}s in {config['width']} px"
    elif config.get("pixels_per_second") is not None:
        zoom_label = f"{config['pixels_per_second']} pixels/s"
    else:
        zoom_label = f"{zoom or 256} samples/pixel"
    console.print(Panel.fit(
        f"[bold]wavesummary[/]\n"
        f"Input: [cyan]{args.input}[/]\n"
        f"Output: [green]{args.output}[/]\n"
        f"Resolution: [cyan]{zoom_label}[/] | Bits: [cyan]{config.get('bits') or 'auto'}[/]\n"
        f"File version: [cyan]{config['file_version']}[/] | "
        f"Channels: [cyan]{'mono' if config['mono'] else 'split'}[/]",
        title="Configuration"
    ))

    if not os.path.isfile(args.input):
        console.print(f"[bold red]Error:[/] Input file '{args.input}' not found.")
        return 1

    event_bus = EventBus()

    @event_bus.on("file.write")
    def on_file_write(path, **data):
        console.print(f"Writing output file: [green]{path}[/]")

    @event_bus.on("generator.init")
    def on_generator_init(samples_per_pixel, channels, **data):
        console.print(f"Generating waveform data: [cyan]{samples_per_pixel}[/] samples per pixel, "
                      f"{channels} input channel(s)")

    try:
        pipeline = Pipeline(config, event_bus=event_bus)
        pipeline.check_conversion(args.input, args.output)
        buffer = pipeline.read_input(args.input)
        is_conversion = args.input.lower().endswith(DATA_EXTENSIONS)
        written = pipeline.export(buffer, args.output,
                                  bits=None if is_conversion else 16)
    except WaveformError as e:
        console.print(f"[bold red]Error:[/] {e}")
        return 1

    print_buffer_summary(buffer)
    console.print(f"\n[dim]{len(written)} file(s) written.[/]")
    return 0


def main():
    sys.exit(run_cli())


if __name__ == "__main__":
    main()

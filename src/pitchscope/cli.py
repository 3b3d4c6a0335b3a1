"""
Offline analysis script.

Steps through an audio file at the target frame rate, feeds each frame to a
:class:`RealtimeAnalyzer` the way live playback would, and writes the
resulting frames to a JSON manifest.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

import librosa
import numpy as np

from pitchscope.config import AnalysisConfig, load_config
from pitchscope.core.stream import AnalysisFrame, RealtimeAnalyzer
from pitchscope.io.analyser import ByteSpectrumAnalyser
from pitchscope.io.exporter import FrameExporter

logger = logging.getLogger(__name__)


def analyze_signal(
    y: np.ndarray,
    sr: int,
    fft_size: int = 2048,
    config: Optional[AnalysisConfig] = None,
    progress_callback: Optional[Callable[[int, str], None]] = None,
) -> list[AnalysisFrame]:
    """
    Analyse a mono signal frame by frame.

    Args:
        y: Mono audio signal.
        sr: Sample rate.
        fft_size: Transform size.
        config: Analysis settings; ``target_fps`` sets the frame rate.
        progress_callback: Optional callback(progress: int, message: str).

    Returns:
        One AnalysisFrame per tick, in playback order.
    """
    config = config or AnalysisConfig()
    session = RealtimeAnalyzer(sample_rate=sr, fft_size=fft_size, config=config)
    analyser = ByteSpectrumAnalyser(fft_size=fft_size)

    hop = sr / config.target_fps
    n_frames = int(np.ceil(len(y) / hop)) if len(y) else 0

    frames = []
    for k in range(n_frames):
        end = min(len(y), int(round((k + 1) * hop)))
        window = analyser.time_domain(y[max(0, end - fft_size):end])
        spectrum = analyser.byte_frequency_data(window)
        frames.append(session.process_frame(window, spectrum))

        if progress_callback and (k % config.target_fps == 0 or k == n_frames - 1):
            progress_callback(int(100 * (k + 1) / n_frames), f"Frame {k + 1}/{n_frames}")

    return frames


def analyze_file(
    audio_path: Path,
    output_path: Path,
    fft_size: int = 2048,
    config: Optional[AnalysisConfig] = None,
    max_duration: Optional[float] = None,
) -> Path:
    """
    Analyse an audio file and write the frame manifest.

    Args:
        audio_path: Input audio file (wav, mp3, flac).
        output_path: Output JSON file.
        fft_size: Transform size.
        config: Analysis settings.
        max_duration: Maximum duration in seconds (None for full audio).

    Returns:
        Path to the written manifest.
    """
    config = config or AnalysisConfig()

    y, sr = librosa.load(audio_path, sr=None, mono=True, duration=max_duration)
    duration = librosa.get_duration(y=y, sr=sr)
    logger.info("Loaded %s: %.1fs at %d Hz", audio_path, duration, sr)

    def report_progress(progress: int, message: str) -> None:
        logger.debug("[%3d%%] %s", progress, message)

    frames = analyze_signal(
        y, sr, fft_size=fft_size, config=config, progress_callback=report_progress
    )

    exporter = FrameExporter()
    path = exporter.export_json(
        frames,
        sample_rate=sr,
        fft_size=fft_size,
        fps=config.target_fps,
        duration=duration,
        output_path=output_path,
    )
    logger.info(
        "Wrote %d frames (%d beats) to %s",
        len(frames),
        sum(1 for f in frames if f.is_beat),
        path,
    )
    return path


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Frame-by-frame pitch, spectrum and beat analysis of an audio file"
    )

    parser.add_argument(
        "audio",
        type=Path,
        help="Input audio file (wav, mp3, flac)",
    )

    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output JSON file (default: <audio>_analysis.json)",
    )

    parser.add_argument(
        "-f", "--fps",
        type=int,
        default=None,
        help="Frames per second (default: 60, or the config file's target_fps)",
    )

    parser.add_argument(
        "--fft-size",
        type=int,
        default=2048,
        help="Transform size in samples (default: 2048)",
    )

    parser.add_argument(
        "--method",
        choices=["yin", "autocorrelation"],
        default=None,
        help="Pitch detection method (default: yin)",
    )

    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="JSON file with AnalysisConfig overrides",
    )

    parser.add_argument(
        "--max-duration",
        type=float,
        default=None,
        help="Only analyse the first N seconds",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.audio.exists():
        print(f"Error: Audio file not found: {args.audio}", file=sys.stderr)
        sys.exit(1)

    if args.fft_size < 2 or args.fft_size % 2:
        print("Error: --fft-size must be an even number >= 2", file=sys.stderr)
        sys.exit(1)

    try:
        config = load_config(args.config) if args.config else AnalysisConfig()
        overrides = {}
        if args.fps is not None:
            overrides["target_fps"] = args.fps
        if args.method is not None:
            overrides["pitch_method"] = args.method
        if overrides:
            config = AnalysisConfig.from_dict({**config.to_dict(), **overrides})
    except (OSError, ValueError) as exc:
        print(f"Error: Invalid configuration: {exc}", file=sys.stderr)
        sys.exit(1)

    output = args.output
    if output is None:
        output = args.audio.with_name(f"{args.audio.stem}_analysis.json")

    analyze_file(
        audio_path=args.audio,
        output_path=output,
        fft_size=args.fft_size,
        config=config,
        max_duration=args.max_duration,
    )
    print(output)


if __name__ == "__main__":
    main()

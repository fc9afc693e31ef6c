"""CLI for recording clips and extracting log-Mel features."""

import argparse
import logging
import sys
from pathlib import Path

import numpy as np

from audio_classifier.audio import AudioCollector, read_wav
from audio_classifier.audio.config import SpectrogramConfig
from audio_classifier.errors import DecodeError
from audio_classifier.pipeline import SampleStore, SpectrogramPipeline


def _cmd_record(args: argparse.Namespace, config: SpectrogramConfig) -> int:
    if args.list_devices:
        try:
            import sounddevice as sd
            print(sd.query_devices())
        except ImportError:
            print("sounddevice not installed: pip install sounddevice", file=sys.stderr)
            return 1
        return 0

    collector = AudioCollector(sample_rate=args.sample_rate, config=config)
    print(f"Recording {args.duration}s to {args.output} (mono {collector.sample_rate} Hz)...")
    collector.record_to_file(str(args.output), args.duration, args.device)
    print(f"Saved: {args.output}")
    return 0


def _cmd_features(args: argparse.Namespace, config: SpectrogramConfig) -> int:
    pipeline = SpectrogramPipeline(config)
    status = 0
    for path in args.files:
        try:
            pcm = read_wav(path)
        except DecodeError as exc:
            print(f"{path}: {exc}", file=sys.stderr)
            status = 1
            continue
        if args.latest:
            spectrograms = [pipeline.analyze_latest(pcm.samples, pcm.sample_rate)]
        else:
            spectrograms = pipeline.process_buffer(pcm)
        print(
            f"{path}: {pcm.duration:.2f}s @ {pcm.sample_rate} Hz -> "
            f"{len(spectrograms)} spectrogram(s)"
        )
        for i, spec in enumerate(spectrograms):
            print(f"  [{i}] {spec.shape[0]} frames x {spec.shape[1]} Mel bins")
    return status


def _cmd_dataset(args: argparse.Namespace, config: SpectrogramConfig) -> int:
    store = SampleStore.from_directory(args.root, pattern=args.pattern)
    if len(store) == 0:
        print(f"No class directories under {args.root}", file=sys.stderr)
        return 1

    pipeline = SpectrogramPipeline(config, max_workers=args.workers)
    result = pipeline.build_dataset(store)
    for class_index, audio_class in store:
        count = result.labels.count(class_index)
        print(f"{class_index}: {audio_class.name} ({len(audio_class.samples)} samples) -> {count} spectrograms")
    for failure in result.failures:
        print(f"skipped {failure}", file=sys.stderr)

    if args.output is not None:
        try:
            X, y = result.as_arrays()
        except ValueError as exc:
            print(f"Cannot save {args.output}: {exc}", file=sys.stderr)
            return 1
        np.savez_compressed(args.output, X=X, y=y, classes=np.array(store.class_names))
        print(f"Saved: {args.output} X={X.shape} y={y.shape}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Log-Mel spectrogram features for audio classification")
    parser.add_argument("--segment-sec", type=float, default=1.0, help="Segment duration (default: 1.0)")
    parser.add_argument("--n-mels", type=int, default=128, help="Mel bins (default: 128)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    rec = sub.add_parser("record", help="Record a mono WAV clip")
    rec.add_argument("--duration", type=float, default=5.0, help="Recording duration in seconds (default: 5)")
    rec.add_argument("--output", "-o", type=Path, default=Path("recording.wav"), help="Output WAV file path")
    rec.add_argument("--sample-rate", type=int, default=None, help="Capture rate (default: 44100)")
    rec.add_argument("--device", type=int, default=None, help="Input device index (list with --list-devices)")
    rec.add_argument("--list-devices", action="store_true", help="List available audio input devices and exit")

    feat = sub.add_parser("features", help="Print spectrogram shapes for WAV files")
    feat.add_argument("files", nargs="+", type=Path)
    feat.add_argument("--latest", action="store_true", help="Only analyze the last segment (live mode)")

    ds = sub.add_parser("dataset", help="Build a dataset from <root>/<class>/*.wav")
    ds.add_argument("root", type=Path)
    ds.add_argument("--pattern", default="*.wav", help="Sample file glob (default: *.wav)")
    ds.add_argument("--workers", type=int, default=None, help="Worker threads")
    ds.add_argument("--output", "-o", type=Path, default=None, help="Save X/y to .npz")
    return parser


def main(argv=None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = SpectrogramConfig(segment_sec=args.segment_sec, n_mels=args.n_mels)
    handlers = {
        "record": _cmd_record,
        "features": _cmd_features,
        "dataset": _cmd_dataset,
    }
    sys.exit(handlers[args.command](args, config))


if __name__ == "__main__":
    main()

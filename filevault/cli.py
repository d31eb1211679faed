import argparse
import sys

from filevault.core.exceptions import FileVaultError
from filevault.core.logging_config import error_logger
from filevault.core.settings import KEY_SIZES
from filevault.crypto.file_encrypter import generate_key
from filevault.crypto.key_management import encode_key
from filevault.vault import FileVault


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="filevault", description="Encrypt / decrypt files at rest")
    parser.add_argument("--config", help="Path to config.json")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate-key", help="Print a new random key")
    gen.add_argument("--cipher", choices=list(KEY_SIZES), help="Cipher the key is for")

    for name, help_text in (("encrypt", "Encrypt a file"), ("decrypt", "Decrypt a file")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("source")
        cmd.add_argument("dest", nargs="?")
        cmd.add_argument("--keep", action="store_true", help="Keep the source file")
        cmd.add_argument("--disk", help="Disk name from config")

    stream = sub.add_parser("stream", help="Decrypt a file to stdout")
    stream.add_argument("source")
    stream.add_argument("--disk", help="Disk name from config")

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        vault = FileVault.from_config(args.config)

        if args.command == "generate-key":
            print(encode_key(generate_key(args.cipher or vault.config.cipher)))
            return 0

        if args.disk:
            vault = vault.disk(args.disk)

        if args.command == "stream":
            vault.stream_decrypt(args.source, sys.stdout.buffer)
            sys.stdout.buffer.flush()
            return 0

        operation = vault.encrypt if args.command == "encrypt" else vault.decrypt
        result = operation(args.source, args.dest, delete_source=not args.keep)

        print(f"✔ {result.source} -> {result.destination}", file=sys.stderr)
        if result.deletion_error:
            print(f"✖ {result.deletion_error}", file=sys.stderr)
        return 0

    except (FileVaultError, ValueError) as e:
        error_logger.error(f"CLI {args.command} failed | {type(e).__name__} | {e}")
        print(f"✖ {type(e).__name__}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

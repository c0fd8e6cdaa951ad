"""The Command Line Interface for the engines, including Interactive elements.

A hybrid CLI/ICLI (Command Line Interface/Interactive Command Line Interface): whatever the command line leaves out
is asked for interactively, unless non-interactive mode is on, in which case defaults are used or the run fails.

Typical usage example:

    sdpe keygen --engine rsa --key main.key
    sdpe encrypt --engine rsa --key main.key --input note.txt --output note.enc
    OR
    python -m sdpe
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import argparse
import logging
import pathlib
import sys
import typing

import sdpe
from sdpe import engines
from sdpe import messages
from sdpe.keys import DELIMITER
from sdpe.keys import Key
from sdpe.keys import RSAMainKey
from sdpe.keys import RSAPrivKey
from sdpe.keys import RSAPubKey

logger = logging.getLogger(__name__)


class HelpData(typing.NamedTuple):
    description: str
    format: typing.Type = str
    choices: list[str] | None = None
    default: typing.Any = None
    advanced: bool = False


help_dict: dict[str, HelpData] = {
    "subcommand":
        HelpData(
            description="The available subcommands in SDPE.",
            choices=["keygen", "publ", "encrypt", "decrypt", "sign", "verify"],
        ),
    "keygen":
        HelpData("Generate a main key into the key file."),
    "publ":
        HelpData("Extract the public part of an RSA main key into the output file."),
    "encrypt":
        HelpData("Encrypt the input file with the key file into the output file."),
    "decrypt":
        HelpData("Decrypt the input file with the key file into the output file."),
    "sign":
        HelpData("Sign the input file with the (private) key file into the output file."),
    "verify":
        HelpData("Recover a signed input file with the (public) key file into the output file."),
    "engine":
        HelpData(description="Encryption engine.", choices=list(engines.ENGINES), default="rsa"),
    "key":
        HelpData(
            description="Location of the key file.",
            format=pathlib.Path,
        ),
    "input":
        HelpData(
            description="Location of the input file.",
            format=pathlib.Path,
        ),
    "output":
        HelpData(
            description="Location of the output file.",
            format=pathlib.Path,
        ),
    "overwrite":
        HelpData(
            description="Overwrite specified destination files if they exist?",
            choices=["Y", "N"],
            default="N",
        )
}

needs = {
    "keygen": ("engine", "key"),
    "publ": ("key", "output"),
    "encrypt": ("engine", "key", "input", "output"),
    "decrypt": ("engine", "key", "input", "output"),
    "sign": ("engine", "key", "input", "output"),
    "verify": ("engine", "key", "input", "output"),
}

PUBLIC_SIDE = ("encrypt", "verify")
WRITING = ("encrypt", "sign")

enginep = argparse.ArgumentParser(add_help=False)
enginep.add_argument("--engine", "-e", choices=help_dict["engine"].choices, help=help_dict["engine"].description)
keyp = argparse.ArgumentParser(add_help=False)
keyp.add_argument("--key", "-k", type=help_dict["key"].format, help=help_dict["key"].description)
outp = argparse.ArgumentParser(add_help=False)
outp.add_argument("--output", "-o", type=help_dict["output"].format, help=help_dict["output"].description)
payloads = argparse.ArgumentParser(add_help=False)
payloads.add_argument("--input", "-i", type=help_dict["input"].format, help=help_dict["input"].description)
payloads.add_argument("--bsize", "-b", type=int, default=messages.BSIZE_DEF, help="Block size in bytes.")
payloads.add_argument("--padsize", "-d", type=int, default=messages.PADSIZE_DEF, help="Pad size in bytes.")
payloads.add_argument("--raw",
                      "-r",
                      action="store_true",
                      help="Read (encrypt, sign) or write (decrypt, verify) block text instead of the payload. "
                      "Needed for every step of chained encryptions but the first encryption and last decryption.")
corep = argparse.ArgumentParser(prog="sdpe")
corep.add_argument("--version", "-v", action="version", version=f"%(prog)s {sdpe.__version__}")
corep.add_argument("--non-interactive", "-n", action="store_true", help="Enable non-interactive mode")
corep.add_argument("--advanced", "-a", action="store_true", help="Enable advanced mode, for interactive mode")
corep.add_argument("--verbose", "-V", action="store_true", help="Log debug information to stderr")
corep.add_argument("--list", "-l", action="store_true", help="List the available engines and operations")
commands = corep.add_subparsers(dest="subcommand", title="Subcommands")

keygen = commands.add_parser("keygen", parents=[enginep, keyp], help=help_dict["keygen"].description)
keygen.add_argument("--keysize", "-s", type=int, help="Key size in bytes (RSA: size of each prime, 128 for RSA2048).")
keygen.add_argument("--workers", "-g", type=int, help="Number of prime generator threads (RSA).")
keygen.add_argument("--overwrite", action="store_const", const="Y", help=help_dict["overwrite"].description)
publ = commands.add_parser("publ", parents=[keyp, outp], help=help_dict["publ"].description)
publ.add_argument("--pem", action="store_true", help="Write a PKCS#1 PEM file instead of key text.")
for op in ("encrypt", "decrypt", "sign", "verify"):
    commands.add_parser(op, parents=[enginep, keyp, payloads, outp], help=help_dict[op].description)


def checkmodes(arg: str, mode: tuple[bool, bool]):
    helper_data = help_dict[arg]
    if (mode[0] or (helper_data.advanced and not mode[1])) and helper_data.default:
        return helper_data.default
    if mode[0]:
        raise IOError(f"Argument {arg} is missing and non-interactive mode is active.")
    return helper_data


def choice_handler(arg: str, mode: tuple[bool, bool], prntr: typing.Callable = print):
    helper_data = checkmodes(arg, mode)
    if not isinstance(helper_data, HelpData):
        return helper_data
    prntr(f"Please specify the {arg}!")
    prntr("Description: " + helper_data.description)
    choices = helper_data.choices
    vald = set(choices)
    for choice in choices:
        defstring = " (Default)" if choice == helper_data.default else ""
        if help_dict.get(choice, None):
            prntr(f"{choice} - {help_dict[choice].description}" + defstring)
        else:
            prntr(f"{choice}" + defstring)
    if helper_data.default is not None:
        prntr("To accept default just click enter. Otherwise specify value.")
    while True:
        ch = input(f"{arg}: ")
        if ch in vald:
            return ch
        if not ch and helper_data.default is not None:
            return helper_data.default
        prntr("Please select an option from the list.")


def input_handler(arg: str, mode: tuple[bool, bool], prntr: typing.Callable = print):
    helper_data = checkmodes(arg, mode)
    if not isinstance(helper_data, HelpData):
        return helper_data
    prntr(f"Please specify the {arg}!")
    prntr("Description: " + helper_data.description)
    if helper_data.default is not None:
        prntr(f"Default value: {helper_data.default}")
        prntr("To accept default just click enter. Otherwise specify value.")
    cls = helper_data.format
    while True:
        ch = input(f"{arg}: ")
        if not ch and helper_data.default is not None:
            return helper_data.default
        if ch == "":
            prntr("Please provide a value.")
            continue
        try:
            return cls(ch)
        except ValueError:
            prntr(f"We could not convert your value to {cls.__name__}.")


def print_listing(prntr: typing.Callable = print) -> None:
    """Print the engines and the operations they support."""
    prntr("Available engines:")
    for name in engines.ENGINES:
        prntr(f"- {name}")
    prntr("\nAvailable operations:")
    for op in help_dict["subcommand"].choices:
        prntr(f"- {op}: {help_dict[op].description}")


def load_key(engine: engines.Engine, text: str, operation: str) -> Key:
    """Parse the key an operation needs from key file text.

    RSA key files may hold a main key, in which case the public or private half is picked for the operation, or a
    single (modulus, exponent) key used as is.

    Raises:
        KeyParseError: If the text is not a key of the engine.
    """
    text = text.strip()
    if isinstance(engine, engines.RSAEngine):
        public = operation in PUBLIC_SIDE
        if text.count(DELIMITER) == 3:
            main = RSAMainKey.parse(text)
            return main.pub if public else main.priv
        return (RSAPubKey if public else RSAPrivKey).parse(text)
    return engine.main_key.parse(text)


def run_keygen(args: argparse.Namespace, pstatus: tuple[bool, bool], pspr: typing.Callable) -> bool:
    if args.key.exists():
        rs = getattr(args, "overwrite", None)
        if rs is None:
            rs = choice_handler("overwrite", pstatus, pspr)
        if rs == "N":
            print("Destination key file already exists!")
            return False
    engine = engines.get_engine(args.engine)
    kwargs = {}
    if args.keysize is not None:
        kwargs["size"] = args.keysize
    if args.workers is not None and isinstance(engine, engines.RSAEngine):
        kwargs["workers"] = args.workers
    mkey = engine.generate(**kwargs)
    args.key.write_text(mkey.serialize() + "\n", encoding="ascii")
    pspr("\nKey generated!")
    return True


def run_publ(args: argparse.Namespace, pspr: typing.Callable) -> bool:
    mkey = RSAMainKey.parse(args.key.read_text(encoding="ascii").strip())
    if args.pem:
        mkey.pub.export(args.output)
    else:
        args.output.write_text(mkey.pub.serialize() + "\n", encoding="ascii")
    pspr("\nPublic key extracted!")
    return True


def run_crypt(args: argparse.Namespace, pspr: typing.Callable) -> bool:
    engine = engines.get_engine(args.engine)
    key = load_key(engine, args.key.read_text(encoding="ascii"), args.subcommand)
    if args.subcommand in WRITING:
        if args.raw:
            msg = messages.Message.from_parts_text(args.input.read_text(encoding="ascii").strip(), True, args.bsize,
                                                   args.padsize)
        else:
            msg = messages.Message.from_text(args.input.read_bytes(), args.bsize, args.padsize)
        engine.encrypt(msg, key)
        args.output.write_text(msg.to_parts_text() + "\n", encoding="ascii")
    else:
        msg = messages.Message.from_parts_text(args.input.read_text(encoding="ascii").strip(), True, args.bsize,
                                               args.padsize)
        engine.decrypt(msg, key)
        if args.raw:
            args.output.write_text(msg.to_parts_text() + "\n", encoding="ascii")
        else:
            try:
                args.output.write_bytes(msg.to_bytes())
            except sdpe.ConversionError:
                print("Could not recover the payload! Wrong key, engine or sizes?")
                return False
    pspr(f"\n{args.subcommand.capitalize()} complete!")
    return True


def main(argv: list[str] | None = None):
    """Core Hybrid CLI/ICLI (Command Line Interface/Interactive Command Line Interface)"""
    args = corep.parse_args(argv)
    pstatus = (args.non_interactive, args.advanced)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s [%(levelname)s] [%(name)s] %(message)s")

    def pspr(text: str):
        """Print only if not in non-interactive mode."""
        if not pstatus[0]:
            print(text)

    if args.list:
        print_listing()
        return
    pspr("Welcome to SDPE!\n")
    if not args.subcommand:
        args.subcommand = choice_handler("subcommand", pstatus)
        for name, default in (("bsize", messages.BSIZE_DEF), ("padsize", messages.PADSIZE_DEF), ("raw", False),
                              ("keysize", None), ("workers", None), ("pem", False)):
            setattr(args, name, getattr(args, name, default))
    for reqs in needs[args.subcommand]:
        if getattr(args, reqs, None) is None:
            if help_dict[reqs].choices is not None:
                res = choice_handler(reqs, pstatus)
            else:
                res = input_handler(reqs, pstatus)
            setattr(args, reqs, res)
        else:
            pspr(f"{reqs}: {getattr(args, reqs)}")
    pspr("\nInput Complete! Executing...")
    logger.debug("Running %s.", args.subcommand)
    try:
        match args.subcommand:
            case "keygen":
                done = run_keygen(args, pstatus, pspr)
            case "publ":
                done = run_publ(args, pspr)
            case _:
                done = run_crypt(args, pspr)
    except (sdpe.SDPEError, ValueError) as exc:
        print(f"Operation failed: {exc}")
        sys.exit(1)
    if not done:
        sys.exit(1)
    pspr("Thank you for using SDPE!")
    pspr("Goodbye!")


if __name__ == "__main__":
    main()

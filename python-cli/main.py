#!/usr/bin/env python3
"""
imagehider Command Line Interface

Hide a grayscale image inside another image, or reveal one.

Usage:
    imagehider hide CARRIER HIDDEN OUTPUT.png
    imagehider reveal ENCODED OUTPUT
    imagehider --version
    imagehider --help
"""

import sys
import os
import argparse
import logging
from typing import List, Optional

# Add python-core to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'python-core'))

from imagehider import ImageHider, ImageHiderError, ChannelOrder, __version__

COMMANDS = ('hide', 'reveal')


def setup_logging(verbose: bool = False):
    """Configure root logging for command line use."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


class ImageHiderCLI:
    """Main CLI application for imagehider."""
    
    def __init__(self, hider: Optional[ImageHider] = None):
        self._injected_hider = hider
        self.hider = hider
    
    def run(self, args: List[str]) -> int:
        """Run the CLI with given arguments."""
        parser = self.create_parser()
        parsed = parser.parse_args(self.normalize_command(args))
        
        if not hasattr(parsed, 'func'):
            parser.print_help()
            return 0
        
        setup_logging(parsed.verbose)
        # New hider per run unless one was injected
        self.hider = self._injected_hider or ImageHider({'channel_order': parsed.channel_order})
        
        try:
            return parsed.func(parsed)
        except ImageHiderError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
    
    @staticmethod
    def normalize_command(args: List[str]) -> List[str]:
        """Lower-case the first positional argument when it names a command."""
        args = list(args)
        skip = False
        for i, arg in enumerate(args):
            if skip or arg.startswith('-'):
                skip = arg == '--channel-order'
                continue
            if arg.lower() in COMMANDS:
                args[i] = arg.lower()
            break
        return args
    
    def create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser."""
        parser = argparse.ArgumentParser(
            prog="imagehider",
            description="Hide a grayscale image inside another image",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
    imagehider hide path/to/base.png path/to/hidden.jpg path/to/output.png
    imagehider reveal path/to/output.png path/to/revealed.png
            """
        )
        
        parser.add_argument(
            '--version',
            action='version',
            version=f'imagehider v{__version__}'
        )
        parser.add_argument('--verbose', '-v', action='store_true',
                            help='Verbose output')
        parser.add_argument('--channel-order', default=ChannelOrder.LEGACY.value,
                            choices=[order.value for order in ChannelOrder],
                            help='Channel pairing used when revealing (default: legacy)')
        
        subparsers = parser.add_subparsers(title='commands', dest='command')
        
        self.add_hide_command(subparsers)
        self.add_reveal_command(subparsers)
        
        return parser
    
    def add_hide_command(self, subparsers):
        """Add hide command to parser."""
        cmd = subparsers.add_parser('hide', help='Hide an image inside a carrier image')
        cmd.add_argument('carrier', help='Carrier image (bmp, gif, jpeg, jpg, png, wpng)')
        cmd.add_argument('hidden', help='Image to hide (bmp, gif, jpeg, jpg, png, wpng)')
        cmd.add_argument('output', help='Output image, must be .png')
        cmd.add_argument('--verify', action='store_true',
                         help='Re-read the output and check the hidden data')
        cmd.set_defaults(func=self.handle_hide)
    
    def add_reveal_command(self, subparsers):
        """Add reveal command to parser."""
        cmd = subparsers.add_parser('reveal', help='Reveal an image hidden with hide')
        cmd.add_argument('encoded', help='Encoded image')
        cmd.add_argument('output', help='Output image for the revealed grayscale image')
        cmd.set_defaults(func=self.handle_reveal)
    
    # Command handlers
    
    def handle_hide(self, args) -> int:
        """Handle hide command."""
        result = self.hider.hide(args.carrier, args.hidden, args.output,
                                 verify_output=args.verify)
        print(result.message)
        return 0
    
    def handle_reveal(self, args) -> int:
        """Handle reveal command."""
        result = self.hider.reveal(args.encoded, args.output)
        print(f"{result.message}: {result.output_path}")
        return 0


def main():
    """Main entry point."""
    cli = ImageHiderCLI()
    sys.exit(cli.run(sys.argv[1:]))


if __name__ == "__main__":
    main()

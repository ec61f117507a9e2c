#!/usr/bin/env python3
import argparse
import os.path
import time

from Nomography import (
    Nomogram, Nomograms, OutFormat, render_detail_mode, render_nomogram_mode, save_image
)


def main():
    args_parser = argparse.ArgumentParser()
    args_parser.add_argument('--format',
                             choices=[f.value for f in OutFormat],
                             default=None,
                             help='Which format to render (all by default)')
    nomogram_names = Nomograms.names() + sorted(Nomogram.example_names())
    args_parser.add_argument('--nomogram',
                             choices=nomogram_names,
                             default=None,
                             help='Which nomogram (all premade and example ones by default)')
    args_parser.add_argument('--details',
                             action='store_true',
                             help='Whether to also render the zoomed view of every scale')
    cli_args = args_parser.parse_args()
    base_dir = os.path.relpath('examples/')
    os.makedirs(base_dir, exist_ok=True)
    out_formats = [next(f for f in OutFormat if f.value == cli_args.format)] if cli_args.format else OutFormat
    for nomogram_name in ([cli_args.nomogram] if cli_args.nomogram else nomogram_names):
        print(f'Building example outputs for: {nomogram_name}')
        for out_format in out_formats:
            try:
                start_time = time.process_time()
                nomogram = Nomogram.load(nomogram_name)
                nomogram.init_scales()
                nomogram_img = render_nomogram_mode(nomogram, out_format)
                nomogram_filename = os.path.join(base_dir, f'{nomogram_name}.Nomogram')
                print(f' Render time: {round(time.process_time() - start_time, 3)}')
                save_image(nomogram_img, nomogram_filename)
                if cli_args.details:
                    for scale in nomogram.scales:
                        detail_img = render_detail_mode(nomogram, scale, out_format)
                        save_image(detail_img, os.path.join(base_dir, f'{nomogram_name}.{scale.name}.Detail'))
                print(f'Time elapsed: {round(time.process_time() - start_time, 3)}')
            except ValueError as e:
                print(f'Error processing {nomogram_name}: {e}; Skipping')


if __name__ == '__main__':
    main()

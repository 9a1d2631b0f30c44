#!/usr/bin/env python3

import io
import os
import json
import time
import tabulate
import optparse
from PIL import Image

import qoicodec
from qoicodec.convert import from_pil

dataset_dir = 'dataset'
stats_output = []

header = ['impl', 'encode ms', 'decode ms', 'size bytes']
detailed_header = ['test', 'impl', 'encode ms',
                   'decode ms', 'pixels', 'size bytes', 'bytes/pixel']

# column title -> chunk variant name
qoi_ops = {'QOI_OP_RUN': 'Run', 'QOI_OP_INDEX': 'Index', 'QOI_OP_DIFF': 'Diff',
           'QOI_OP_LUMA': 'Luma', 'QOI_OP_RGB': 'Rgb', 'QOI_OP_RGBA': 'Rgba'}

# helper functions
# ---------------


def msec(seconds):
    return seconds * 1000


def empty_stats():
    return {impl: {'encode': 0, 'decode': 0, 'size': 0} for impl in ['png', 'qoi']}


def aggregate(a, b):
    return {impl: {stat: a[impl][stat] + b[impl][stat] for stat in a[impl]} for impl in ['png', 'qoi']}


def average(struct, ittr):
    return {impl: {stat: struct[impl][stat]/ittr for stat in struct[impl]} for impl in ['png', 'qoi']}


def load_image(file_path):
    with Image.open(file_path) as img:
        return from_pil(img)


def pix_count(file_path):
    img = Image.open(file_path)
    dimension = [img.width, img.height]
    img.close()
    return dimension


def timed(fn, *args, **kwargs):
    start = time.perf_counter()
    result = fn(*args, **kwargs)
    return result, msec(time.perf_counter() - start)


# ---------------
def png_roundtrip(pixels, width, height, channels):
    img = Image.frombytes('RGBA' if channels == 4 else 'RGB', (width, height), pixels)

    def save():
        buf = io.BytesIO()
        img.save(buf, format='PNG')
        return buf.getvalue()

    def load(data):
        with Image.open(io.BytesIO(data)) as decoded:
            decoded.load()
            return decoded.tobytes()

    encoded, encode_ms = timed(save)
    _, decode_ms = timed(load, encoded)
    return {'encode': encode_ms, 'decode': decode_ms, 'size': len(encoded)}


def qoi_roundtrip(pixels, width, height, channels):
    encoded, encode_ms = timed(qoicodec.encode, pixels, width, height, channels)
    decoded, decode_ms = timed(qoicodec.decode, encoded)
    if decoded.pixels != pixels:
        raise RuntimeError('decoded pixels differ from the source image')
    return {'encode': encode_ms, 'decode': decode_ms, 'size': len(encoded)}


def run_benchmark(file_path):
    pixels, width, height, channels = load_image(file_path)
    stats_struct = {'png': png_roundtrip(pixels, width, height, channels),
                    'qoi': qoi_roundtrip(pixels, width, height, channels)}
    return stats_struct


# ---------------
def op_freq(file_path):
    counts = qoicodec.chunk_frequency(*load_image(file_path))
    return {op: counts.get(name, 0) for op, name in qoi_ops.items()}

# ---------------


def main():
    global dataset_dir
    usage = 'usage: %prog [options] arg'
    parser = optparse.OptionParser(usage=usage)
    parser.add_option('-e', '--epochs', dest='epochs',
                      default=1, type=int,
                      help='number of iterations (%default)')
    parser.add_option('-a', '--all', dest='all',
                      default=False, action='store_true',
                      help='use all files in the dataset (%default)')
    parser.add_option('-q', '--frequency', dest='freq',
                      default=False, action='store_true',
                      help='analyse chunk frequency qoi (%default)')
    parser.add_option('-v', '--verbose', dest='verbose',
                      default=False, action='store_true',
                      help='print detailed analysis for each test (%default)')
    parser.add_option('-d', '--dataset', dest='dataset',
                      default=dataset_dir,
                      help='directory holding the test image sets (%default)')
    (options, args) = parser.parse_args()
    dataset_dir = options.dataset

    if (len(args) == 0 and not options.all):
        parser.print_usage()
        print(os.listdir(dataset_dir))
        return

    # if argument all is specified, use all run all benchmarks
    if (options.all or args[0] == 'all'):
        datasets = os.listdir(dataset_dir)
    else:
        datasets = args

    print(f"dataset {datasets}, epochs: {options.epochs}")

    # frequency analysis of qoi chunks
    if (options.freq):
        op_list = []
        for dir in datasets:
            for test in os.listdir(os.path.join(dataset_dir, dir)):
                test_path = os.path.join(dataset_dir, dir, test)
                freq = op_freq(test_path)
                total = sum(freq.values())
                op_list.append([test] + [freq[op]/total for op in qoi_ops])
        print('\n--- frequency analysis ---')
        print(tabulate.tabulate(op_list, headers=["test"] + list(qoi_ops),
                                floatfmt='.2f', tablefmt='plain'))
        return

    # run benchmark
    for dir in datasets:
        aggregate_stats = empty_stats()
        # iterate multiple epochs for average
        for e in range(0, options.epochs):
            for test in os.listdir(os.path.join(dataset_dir, dir)):
                test_path = os.path.join(dataset_dir, dir, test)
                run_stats = run_benchmark(test_path)
                aggregate_stats = aggregate(aggregate_stats, run_stats)
                run_stats['name'] = test
                run_stats['epoch'] = e
                run_stats['dimension'] = pix_count(test_path)
                run_stats['pixels'] = run_stats['dimension'][0] * run_stats['dimension'][1]
                stats_output.append(run_stats)

        stats_struct = average(aggregate_stats, options.epochs)
        table_data = [['png', stats_struct['png']['encode'],  stats_struct['png']['decode'],
                       int(stats_struct['png']['size'])],
                      ['qoi', stats_struct['qoi']['encode'],  stats_struct['qoi']['decode'],
                       int(stats_struct['qoi']['size'])]]

        print('\n--- %s benchmark data ---' %(dir))
        print(tabulate.tabulate(table_data, headers=header,
                                floatfmt='.2f', tablefmt='plain'))

    # display per test statistics
    if options.verbose:
        for dir in datasets:
            table_rows = []
            for test in os.listdir(os.path.join(dataset_dir, dir)):
                samples = list(filter(lambda s: s['name'] == test, stats_output))
                stats_struct = empty_stats()
                pixel_count = samples[0]['pixels']

                for ittr in samples:
                    stats_struct = aggregate(stats_struct, ittr)
                stats_struct = average(stats_struct, options.epochs)
                table_data = [[test, 'png', stats_struct['png']['encode'],  stats_struct['png']['decode'],
                            pixel_count, stats_struct['png']['size'], stats_struct['png']['size'] / pixel_count],
                            [test, 'qoi', stats_struct['qoi']['encode'],  stats_struct['qoi']['decode'],
                            pixel_count, stats_struct['qoi']['size'], stats_struct['qoi']['size'] / pixel_count]]
                table_rows += table_data
            print('\n--- per test statistic ---')
            print(tabulate.tabulate(table_rows, headers=detailed_header,
                                    floatfmt='.2f', tablefmt='plain'))

    with open('stats.json', 'w') as jsonfile:
        json_struct = json.dumps(stats_output, indent=4)
        jsonfile.write(json_struct)


if __name__ == '__main__':
    main()

import sys

import matplotlib.pyplot as plt
import numpy as np
from PIL import Image

from qoicodec import CACHE_SIZE, pixel_hash


def as_rgba(pixel_grid):
    grid = np.asarray(pixel_grid, dtype=np.uint8)
    if grid.shape[-1] == 3:
        alpha = np.full(grid.shape[:-1] + (1,), 255, dtype=np.uint8)
        grid = np.concatenate([grid, alpha], axis=-1)
    return grid.reshape(-1, 4)


def hash_counts(pixel_grid, hash_function=pixel_hash):
    """Number of pixels landing in each cache slot."""
    counts = np.zeros(CACHE_SIZE, dtype=np.int64)
    for px in as_rgba(pixel_grid):
        counts[hash_function(tuple(int(c) for c in px))] += 1
    return counts


def pixel_hash_distribution(pixel_grid, hash_function=pixel_hash):
    counts = hash_counts(pixel_grid, hash_function)
    plt.bar(range(CACHE_SIZE), counts, color='blue', edgecolor='black', width=1.0)
    plt.xlabel('cache slot')
    plt.ylabel('pixels')
    plt.show()


def main():
    path = sys.argv[1] if len(sys.argv) > 1 else 'dataset/imgbench/artificial.png'
    im = Image.open(path).convert('RGBA')
    pix = np.array(im)
    print(pix[0])
    pixel_hash_distribution(pix)

if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Example script demonstrating seeded binary segmentation.
"""

import argparse
import numpy as np
import matplotlib.pyplot as plt
from seeded_seg import SeededSegmentation
from seeded_seg.image_io import load_image_rgb

def create_seeds(image_shape, margin=15, object_size=20):
    """Background seeds as a frame, foreground seed as a centred square."""
    height, width = image_shape
    background = np.zeros(image_shape, dtype=bool)
    foreground = np.zeros(image_shape, dtype=bool)

    background[margin:-margin, margin:margin*2] = True  # Left
    background[margin:-margin, -margin*2:-margin] = True  # Right
    background[margin:margin*2, margin:-margin] = True  # Top
    background[-margin*2:-margin, margin:-margin] = True  # Bottom

    center_y, center_x = height // 2, width // 2
    half_size = object_size // 2
    foreground[center_y-half_size:center_y+half_size,
               center_x-half_size:center_x+half_size] = True

    return background, foreground

def visualize_results(image, background, foreground, field, mask):
    """Show the input with seeds, the potential field and the final mask."""
    fig, axes = plt.subplots(1, 3, figsize=(15, 5))

    seeds = np.zeros(mask.shape, dtype=np.int32)
    seeds[background] = 1
    seeds[foreground] = 2
    seed_vis = np.ma.masked_where(seeds == 0, seeds)
    axes[0].imshow(image)
    axes[0].imshow(seed_vis, cmap='Set1', alpha=0.7)
    axes[0].set_title('Seeds\n(Red=Background, Green=Foreground)')
    axes[0].axis('off')

    im = axes[1].imshow(field, cmap='coolwarm', vmin=-1, vmax=1)
    axes[1].set_title('Potential Field')
    axes[1].axis('off')
    fig.colorbar(im, ax=axes[1], fraction=0.046)

    axes[2].imshow(~mask, cmap='gray')
    axes[2].set_title('Foreground')
    axes[2].axis('off')

    plt.tight_layout()
    plt.show()

def main():
    parser = argparse.ArgumentParser(description='Test seeded segmentation on an image')
    parser.add_argument('image_path', help='Path to the input image')
    parser.add_argument('--margin', type=int, default=15,
                       help='Margin from border for background seeds (default: 15)')
    parser.add_argument('--object-size', type=int, default=20,
                       help='Size of the foreground seed region (default: 20)')
    parser.add_argument('--beta', type=float, default=90.0)
    parser.add_argument('--sigma', type=float, default=1.0)
    args = parser.parse_args()

    print("Loading image...")
    image = load_image_rgb(args.image_path)

    print("Creating seeds...")
    background, foreground = create_seeds(image.shape[:2], margin=args.margin, object_size=args.object_size)

    print("Running seeded segmentation...")
    engine = SeededSegmentation(image, beta=args.beta, sigma=args.sigma)
    field = engine.potential_field(background, foreground)
    mask = field > 0

    print("\nSegmentation Statistics:")
    print(f"Image shape: {image.shape}")
    print(f"Background pixels: {int(mask.sum())} ({100 * mask.mean():.1f}%)")
    print(f"Foreground pixels: {int((~mask).sum())} ({100 * (~mask).mean():.1f}%)")

    print("\nDisplaying visualization...")
    visualize_results(image, background, foreground, field, mask)

if __name__ == "__main__":
    main()

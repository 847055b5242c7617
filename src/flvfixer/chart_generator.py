import pandas as pd
import matplotlib.pyplot as plt
import argparse
import os

def _plot_streams(ax, data, column):
    """Plot ``column`` against tag index for the audio and video rows of ``data``."""
    video_data = data[data['Type'] == 'V']
    audio_data = data[data['Type'] == 'A']

    if not video_data.empty:
        ax.plot(video_data['Index'], video_data[column],
                color='blue', alpha=0.8, label='Video', linestyle='-', linewidth=1.5)

    if not audio_data.empty:
        ax.plot(audio_data['Index'], audio_data[column],
                color='orange', alpha=0.8, label='Audio', linestyle='--', linewidth=1.5)

def generate_timestamp_chart(output_dir, data, prefix):
    """
    Generates a chart of original and corrected tag timestamps.

    One column of plots per segment: the top plot shows the timestamps as
    recorded, the bottom one the timestamps after correction. Tags where a
    jump table entry applies are marked with a vertical line.

    Args:
        output_dir (str): Directory to save the chart in.
        data (pandas.DataFrame): Tag index as returned by FlvProcessor.to_dataframe().
        prefix (str): File name prefix, usually the input file's stem.

    Returns:
        str: Path of the saved PNG file.
    """
    segments = sorted(data['Segment'].unique())
    fig, axes = plt.subplots(2, len(segments), figsize=(8 * len(segments), 10),
                             sharex='col', squeeze=False)

    for column, segment_index in enumerate(segments):
        segment_data = data[data['Segment'] == segment_index]
        ax1, ax2 = axes[0][column], axes[1][column]

        _plot_streams(ax1, segment_data, 'Timestamp (ms)')
        ax1.set_ylabel('Original Timestamp (ms)')
        ax1.set_title(f'Segment {segment_index}')
        ax1.grid(True, alpha=0.3)

        _plot_streams(ax2, segment_data, 'Corrected Timestamp (ms)')
        ax2.set_xlabel('Tag Index')
        ax2.set_ylabel('Corrected Timestamp (ms)')
        ax2.grid(True, alpha=0.3)

        jumps = segment_data[segment_data['Jump Entry'].astype(bool)]
        for tag_index in jumps['Index']:
            ax1.axvline(x=tag_index, color='red', linestyle=':', alpha=0.7)
            ax2.axvline(x=tag_index, color='red', linestyle=':', alpha=0.7)

        if ax1.get_legend_handles_labels()[0]:
            ax1.legend(loc='upper left')

    fig.suptitle(f'Tag Timestamps - {prefix}', fontsize=16)
    fig.tight_layout(rect=[0, 0, 1, 0.95])

    chart_path = os.path.join(output_dir, f"{prefix}_timestamps.png")
    plt.savefig(chart_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    print(f"Timestamp chart saved to {chart_path}")
    return chart_path

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Generate a timestamp chart from an exported tag index CSV.")
    parser.add_argument("csv_file", help="CSV file written by flvfixer --export-csv")

    args = parser.parse_args()

    if not os.path.exists(args.csv_file):
        print(f"Tag index file not found: {args.csv_file}")
        exit(1)

    directory = os.path.dirname(os.path.abspath(args.csv_file))
    prefix = os.path.basename(args.csv_file)
    if prefix.endswith("_tags.csv"):
        prefix = prefix[:-len("_tags.csv")]
    else:
        prefix = os.path.splitext(prefix)[0]

    generate_timestamp_chart(directory, pd.read_csv(args.csv_file), prefix)

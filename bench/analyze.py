import json
import glob
import os
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

DATA_DIR = "data"
PLOT_DIR = "plots"

def load_data(data_dir: str = DATA_DIR):
    results = []
    for file in glob.glob(f"{data_dir}/*.json"):
        with open(file, "r") as f:
            results.append(json.load(f))
    return results

def summarize(df: pd.DataFrame) -> pd.DataFrame:
    """Per mode/workers: P50/P99 latency, throughput and throughput vs blocking."""
    rows = []
    for (mode, workers), subset in df.groupby(["mode", "workers"]):
        latencies = np.concatenate([np.asarray(l, dtype=float) for l in subset["latencies_us"]]) \
            if len(subset) else np.array([])
        rows.append({
            "mode": mode,
            "workers": workers,
            "p50_us": float(np.percentile(latencies, 50)) if latencies.size else 0.0,
            "p99_us": float(np.percentile(latencies, 99)) if latencies.size else 0.0,
            "throughput": float(subset["throughput"].mean()),
            "yields": int(subset["yields"].sum()),
        })
    summary = pd.DataFrame(rows)
    baseline = summary[summary["mode"] == "blocking"].set_index("workers")["throughput"]
    summary["relative_throughput"] = [
        row.throughput / baseline[row.workers] if row.workers in baseline.index and baseline[row.workers] else np.nan
        for row in summary.itertuples()
    ]
    return summary

def plot_latency_cdf(df: pd.DataFrame):
    plt.figure(figsize=(10, 6))

    for mode in df['mode'].unique():
        subset = df[df['mode'] == mode]
        latencies = []
        for l_list in subset['latencies_us']:
            latencies.extend(l_list)

        if len(latencies) < 2:
            continue

        sorted_lat = np.sort(latencies)
        p = 1. * np.arange(len(sorted_lat)) / (len(sorted_lat) - 1)
        plt.plot(sorted_lat, p, label=f"{mode}")

    plt.title("Heartbeat Latency CDF")
    plt.xlabel("Latency (microseconds)")
    plt.ylabel("Probability")
    plt.grid(True)
    plt.legend()
    plt.semilogx()
    plt.savefig(f"{PLOT_DIR}/latency_cdf.png")
    plt.close()

def plot_tail_latency_vs_load(summary: pd.DataFrame):
    plt.figure(figsize=(10, 6))

    for mode in summary['mode'].unique():
        subset = summary[summary['mode'] == mode].sort_values('workers')
        plt.plot(subset['workers'], subset['p99_us'], marker='o', label=mode)

    plt.title("Tail Latency (P99) vs Load")
    plt.xlabel("Number of Workers")
    plt.ylabel("P99 Latency (us)")
    plt.grid(True)
    plt.legend()
    plt.savefig(f"{PLOT_DIR}/p99_vs_load.png")
    plt.close()

def plot_throughput_vs_load(summary: pd.DataFrame):
    plt.figure(figsize=(10, 6))

    for mode in summary['mode'].unique():
        subset = summary[summary['mode'] == mode].sort_values('workers')
        plt.plot(subset['workers'], subset['relative_throughput'], marker='o', label=mode)

    plt.title("Throughput Relative to Blocking")
    plt.xlabel("Number of Workers")
    plt.ylabel("Work Units / Blocking Work Units")
    plt.grid(True)
    plt.legend()
    plt.savefig(f"{PLOT_DIR}/throughput_vs_load.png")
    plt.close()

def main():
    os.makedirs(PLOT_DIR, exist_ok=True)
    data = load_data()
    if not data:
        print("No data found!")
        return

    df = pd.DataFrame(data)
    summary = summarize(df)
    print(summary.to_string(index=False))

    plot_latency_cdf(df)
    plot_tail_latency_vs_load(summary)
    plot_throughput_vs_load(summary)

    print(f"Plots saved to {PLOT_DIR}/")

if __name__ == "__main__":
    main()

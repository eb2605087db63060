# experiments/run_experiments.py
# Automate experiments: vary samples and output truncation, collect success/time statistics
# Requires that oracle is running (adjust --oracle if needed).
# Truncation is fixed by the oracle's config (OUTPUT_BITS / OUTPUT_SELECT), so
# only bit counts the running oracle serves are attacked; restart the oracle
# with other settings and append runs to cover more rows of the heatmap.

import argparse
import csv
import os
import subprocess
import sys
import time

import requests

ORACLE = 'http://127.0.0.1:5000'
ATTACKER_MODULE = 'tinymt32.attacker.recover'
SUCCESS_MARKER = 'Prediction confirmed by oracle'


def run_single(samples, output_bits, output_select='high', oracle=ORACLE):
    # call attacker as subprocess, capture stdout for success detection
    cmd = [sys.executable, '-m', ATTACKER_MODULE,
           '--samples', str(samples), '--output_bits', str(output_bits),
           '--output_select', output_select, '--oracle', oracle]
    t0 = time.time()
    p = subprocess.run(cmd, capture_output=True, text=True, timeout=600)
    elapsed = time.time() - t0
    stdout = p.stdout + p.stderr
    success = SUCCESS_MARKER in stdout
    return success, elapsed, stdout


def oracle_settings(oracle=ORACLE):
    """(bits, select) the running oracle truncates its outputs with."""
    r = requests.get(oracle + '/get_output', timeout=5)
    r.raise_for_status()
    body = r.json()
    return int(body['bits']), body['select']


def parse_int_list(value):
    return [int(x) for x in value.split(',') if x.strip()]


def ensure_results_dir(path='results'):
    os.makedirs(path, exist_ok=True)


def main(argv=None):
    parser = argparse.ArgumentParser()
    parser.add_argument('--samples_list', type=str, default='64,120,126,127,140,160', help='comma list')
    parser.add_argument('--output_bits_list', type=str, default='32',
                        help='comma list; entries the oracle does not serve are skipped')
    parser.add_argument('--trials', type=int, default=10, help='repeats per combo')
    parser.add_argument('--oracle', default=ORACLE)
    args = parser.parse_args(argv)

    samples_list = parse_int_list(args.samples_list)
    served_bits, select = oracle_settings(args.oracle)
    requested = parse_int_list(args.output_bits_list)
    output_bits_list = [b for b in requested if b == served_bits]
    skipped = [b for b in requested if b != served_bits]
    if skipped:
        print(f"Skipping output_bits {skipped}: oracle serves {served_bits} bits ({select})")
    if not output_bits_list:
        raise SystemExit(f"Oracle serves {served_bits} bits; none of {requested} can be attacked as given.")

    ensure_results_dir()
    csv_path = os.path.join('results', f'experiments_{int(time.time())}.csv')
    with open(csv_path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(['samples', 'output_bits', 'output_select', 'trial', 'success', 'time_s'])
        for samples in samples_list:
            for output_bits in output_bits_list:
                for trial in range(args.trials):
                    print(f"Running samples={samples}, output_bits={output_bits} ({select}), trial={trial}")
                    success, elapsed, out = run_single(samples, output_bits, select, args.oracle)
                    writer.writerow([samples, output_bits, select, trial, int(success), f"{elapsed:.3f}"])
                    f.flush()
    print("Experiments complete. CSV saved at:", csv_path)
    return csv_path


if __name__ == '__main__':
    main()

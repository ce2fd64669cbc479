#!/usr/bin/env python3
"""Run a streaming viral search against a local server and save the places to JSON."""

import json
import sys
import requests

def main():
    latitude = float(sys.argv[1]) if len(sys.argv) > 1 else 40.7580
    longitude = float(sys.argv[2]) if len(sys.argv) > 2 else -73.9855
    query = sys.argv[3] if len(sys.argv) > 3 else ""
    output_file = sys.argv[4] if len(sys.argv) > 4 else "viral_places.json"

    url = "http://localhost:8000/api/search/stream"
    body = {"latitude": latitude, "longitude": longitude, "query": query}

    print(f"Searching near: {latitude}, {longitude}" + (f" for '{query}'" if query else ""))
    print(f"Output will be saved to: {output_file}")
    print("-" * 50)

    response = requests.post(url, json=body, stream=True)

    result = None
    event_type = None

    for line in response.iter_lines(decode_unicode=True):
        if not line:
            continue

        if line.startswith("event:"):
            event_type = line[6:].strip()
            continue

        if line.startswith("data:"):
            data_str = line[5:].strip()
            if not data_str:
                continue

            try:
                data = json.loads(data_str)
            except json.JSONDecodeError:
                continue

            if event_type == "stage":
                print(f"[{data['stage']}] {data.get('message', '')}")
            elif event_type == "complete":
                result = data
                for i, place in enumerate(data["places"], 1):
                    flag = "" if place["verified"] else " (unverified)"
                    print(f"[{i:2d}] {place['name']} - {place['distance']}{flag}")
                print(f"\n[COMPLETE] Total: {data['total_found']} places")
            elif event_type == "error":
                print(f"\n[ERROR {data['status']}] {data['message']}")

    if result is None:
        sys.exit(1)

    with open(output_file, "w") as f:
        json.dump(result, f, indent=2)

    print(f"\nSaved {result['total_found']} places to {output_file}")

if __name__ == "__main__":
    main()

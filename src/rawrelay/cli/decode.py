"""
CLI command for decoding capture files.
"""
import json
from typing import Optional

import click
from scapy.error import Scapy_Exception
from scapy.utils import RawPcapReader

from ..capture.frame_decoder import DLT_EN10MB, decode_frame
from ..exceptions import FrameDecodeError


def _format_ports(record) -> str:
    if record["src_port"] is None or record["dst_port"] is None:
        return "-"
    return f"{record['src_port']}->{record['dst_port']}"


def _link_type(reader, meta) -> int:
    # pcapng carries the link type per interface, legacy pcap once per file
    linktype = getattr(meta, "linktype", None)
    return reader.linktype if linktype is None else linktype


@click.command()
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
@click.option("--limit", "limit", type=int, default=50, show_default=True,
              help="Max frames to decode (0 = no limit)")
@click.option("--port", "port", type=int, help="Only show UDP datagrams to this port")
@click.option("--format", "format", type=click.Choice(["table", "json", "jsonl"]),
              default="table", show_default=True, help="Output format")
@click.option("--show-errors", is_flag=True, help="Also list frames that fail to decode")
def decode(filepath: str, limit: int, port: Optional[int], format: str, show_errors: bool):
    """
    Decode Ethernet frames from a PCAP/PCAPNG file.

    Example:
      rawrelay decode capture.pcap --port 4321
    """
    records = []
    count = 0
    errors = 0
    ethernet_records = 0
    unsupported = {}

    if format == "table":
        click.echo("No   Stack        Src -> Dst                       Ports        Body")
        click.echo("-" * 80)

    try:
        with RawPcapReader(filepath) as reader:
            for number, (data, meta) in enumerate(reader, start=1):
                linktype = _link_type(reader, meta)
                if linktype != DLT_EN10MB:
                    unsupported[linktype] = unsupported.get(linktype, 0) + 1
                    continue

                ethernet_records += 1
                try:
                    frame = decode_frame(data)
                except FrameDecodeError as e:
                    errors += 1
                    if show_errors and port is None:
                        if format == "json":
                            records.append(_error_record(number, e))
                        else:
                            _emit_error(format, number, e)
                    continue

                udp = frame.udp_datagram
                if port is not None and (udp is None or udp.destination_port != port):
                    continue

                record = frame.to_dict()
                record["number"] = number
                if format == "table":
                    src = record["src_ip"] or record["src_mac"]
                    dst = record["dst_ip"] or record["dst_mac"]
                    body = bytes(udp.body[:16]) if udp is not None else b""
                    click.echo(
                        f"{number:<4} {frame.stack_summary:<12} {src:<17} -> {dst:<17} "
                        f"{_format_ports(record):<12} {body!r}"
                    )
                elif format == "json":
                    records.append(record)
                else:
                    click.echo(json.dumps(record, separators=(",", ":"), ensure_ascii=True))

                count += 1
                if limit > 0 and count >= limit:
                    break
    except (OSError, EOFError, Scapy_Exception) as e:
        raise click.ClickException(f"Failed to read {filepath}: {e}")

    if unsupported and not ethernet_records:
        linktypes = ", ".join(str(linktype) for linktype in sorted(unsupported))
        raise click.ClickException(f"Unsupported link type {linktypes} in {filepath}")

    if format == "json":
        click.echo(json.dumps(records, separators=(",", ":"), ensure_ascii=True))
    elif format == "table":
        click.echo(f"\n{count} frames shown, {errors} undecodable")
        if unsupported:
            skipped = sum(unsupported.values())
            click.echo(f"{skipped} non-Ethernet records skipped (link types {sorted(unsupported)})")


def _error_record(number: int, error: FrameDecodeError):
    return {"number": number, "error": str(error), "stage": error.stage}


def _emit_error(format: str, number: int, error: FrameDecodeError) -> None:
    if format == "table":
        click.echo(f"{number:<4} {'ERR':<12} {error}")
    else:
        click.echo(json.dumps(_error_record(number, error), separators=(",", ":")))

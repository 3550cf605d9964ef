from __future__ import annotations
import argparse
import logging
from pathlib import Path
from dotenv import load_dotenv

from resumematch.agents.service import LLMInferenceService
from resumematch.config import Settings
from resumematch.diff_engine import edit_distance
from resumematch.graph.orchestrator import AnalysisOrchestrator
from resumematch.graph.stages import availability, stages
from resumematch.graph.workflow import rewrite_resume
from resumematch.llm_provider import PROVIDERS
from resumematch.persistence import JsonFileStore, to_saved_analysis
from resumematch.simulation import SimulationRunner
from resumematch.state import ApplicationStatus, OptimizationMode, SessionInputs
from resumematch.tracker import ApplicationTracker
from resumematch.utils import read_text_file

logger = logging.getLogger("resumematch")


def _read(path: str | None) -> str | None:
    return read_text_file(path) if path else None


def _track(args: argparse.Namespace, settings: Settings) -> None:
    store = JsonFileStore(args.store)
    if args.list:
        for record_id, record in store.list():
            score = "-" if record.match_score is None else f"{record.match_score}/100"
            role = record.job_description.strip().splitlines()[0][:60] if record.job_description.strip() else "-"
            print(f"{record_id}  {record.status.value:<12} {score:>7}  {record.created_at:%Y-%m-%d}  {role}")
        return

    service = LLMInferenceService.from_provider(args.provider, settings.temperature, args.timeout)
    record = ApplicationTracker(store, service).set_status(args.track, args.status)
    print(f"[OK] {args.track} is now {record.status.value}")
    if record.insights is not None:
        for title, items in (("What worked", record.insights.positive_factors),
                             ("What did not", record.insights.negative_factors),
                             ("Recommendations", record.insights.recommendations)):
            print(f"\n{title}:")
            for item in items:
                print(f"- {item}")


def main():
    load_dotenv()  # load .env if exists
    settings = Settings.from_env()

    parser = argparse.ArgumentParser(description="Compare a resume against a job description (Gemini/Mistral)")
    parser.add_argument("--jd", help="Path to the job description (.txt/.md)")
    parser.add_argument("--resume", help="Path to resume text (.txt/.md)")
    parser.add_argument("--document", help="Path to an uploaded resume document (.pdf/.txt/.md)")
    parser.add_argument("--out", default="analysis.json", help="Where to write the saved analysis JSON")
    parser.add_argument("--provider", default=settings.provider, choices=sorted(PROVIDERS), help="LLM provider selection")
    parser.add_argument("--timeout", type=float, default=settings.stage_timeout, help="Per-stage timeout in seconds")
    parser.add_argument("--simulate", help="Path to an edited resume to re-score against the baseline")
    parser.add_argument("--rewrite", choices=[m.value for m in OptimizationMode], help="Generate a JD-aligned resume")
    parser.add_argument("--rewrite-out", default="aligned_resume.txt", help="Where to write the generated resume")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--store", help="Directory of saved analyses (the application tracker)")
    parser.add_argument("--list", action="store_true", help="List saved analyses in --store and exit")
    parser.add_argument("--track", metavar="ID", help="Saved analysis id whose application status to change")
    parser.add_argument("--status", choices=[s.value for s in ApplicationStatus], help="New status for --track")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.list or args.track:
        if not args.store:
            parser.error("--list and --track need --store")
        if args.track and not args.status:
            parser.error("--track needs --status")
        _track(args, settings)
        return
    if not args.jd:
        parser.error("--jd is required to run an analysis")

    inputs = SessionInputs(
        job_description=_read(args.jd),
        resume_text=_read(args.resume),
        document_ref=args.document,
    )
    if not inputs.resume_text and not inputs.document_ref:
        parser.error("provide --resume and/or --document")

    service = LLMInferenceService.from_provider(args.provider, settings.temperature, args.timeout)

    with AnalysisOrchestrator(service, timeout=args.timeout, max_workers=settings.max_workers) as orch:
        orch.start(inputs)
        last_label = None
        while orch.is_active():
            _, label = orch.observe()
            if label and label != last_label:
                logger.info(label)
                last_label = label
            orch.wait(0.5)
        snapshot, _ = orch.observe()

    for stage in stages():
        run = snapshot.run(stage.name)
        state = availability(snapshot, stage.name).value
        print(f"[{state.upper():>11}] {stage.name.value}" + (f": {run.error}" if run.error else ""))

    match = snapshot.match_analysis
    if match:
        print(f"[OK] Match score: {match.match_score}/100; missing: {', '.join(match.missing_skills) or '-'}")

    record = to_saved_analysis(snapshot)
    out_path = Path(args.out)
    out_path.write_text(record.model_dump_json(indent=2), encoding="utf-8")
    print(f"[OK] Analysis written to: {out_path.resolve()}")
    if args.store:
        print(f"[OK] Saved to tracker as {JsonFileStore(args.store).save(record)}")

    if args.simulate:
        if match is None:
            print("[ERR] Simulation needs a successful match score.")
        else:
            runner = SimulationRunner(service, timeout=args.timeout, max_workers=settings.max_workers)
            sim = runner.simulate_against(snapshot, read_text_file(args.simulate))
            runner.close()
            if sim.score is not None:
                print(f"[OK] Simulated score: {sim.baseline_score} -> {sim.score} ({sim.delta:+d})")
            else:
                print(f"[ERR] Simulation {sim.status.value}: {sim.error}")

    if args.rewrite:
        original = inputs.resume_text
        if not original:
            print("[ERR] Rewriting needs pasted resume text (--resume).")
            return
        result = rewrite_resume(service, original, inputs.job_description, match, args.rewrite)
        if result.aligned is None:
            print("[ERR] No resume generated.")
            return
        Path(args.rewrite_out).write_text(result.aligned.generated_resume, encoding="utf-8")
        changed = edit_distance(result.diff)
        print(f"[OK] Generated resume written to: {Path(args.rewrite_out).resolve()} ({changed} chars changed)")
        if result.improvement is not None:
            print(f"[OK] Score: {result.baseline_score} -> {result.new_score} ({result.improvement:+d})")
        print(result.aligned.improvement_summary)


if __name__ == "__main__":
    main()

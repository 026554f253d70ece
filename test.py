from frame_path import (
    Path, build_path,
    end_parameter, interpolate, interpolate_position,
    sample_path, axis_angle_to_quaternion,
)
import numpy as np
import torch

if __name__ == "__main__":
    # =========================================================================
    # 1. 只有位置的路径
    # =========================================================================
    positions = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0]])
    path = build_path(positions)
    print(f"Path: {path}")
    print(f"  t = {path.t}")

    # 单个参数
    for t in [-1.0, 0.5, 1.5, 2.5]:
        print(f"  t={t:+.2f}: r={interpolate_position(path, t)}")

    # =========================================================================
    # 2. 带姿态的路径 (位置 + 四元数)
    # =========================================================================
    print("\n带姿态的路径:")

    r = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]])
    q = np.stack([
        np.array([0.0, 0.0, 0.0, 1.0]),
        axis_angle_to_quaternion(np.array([1.0, 0.0, 0.0]), 45.0, degrees=True),
        axis_angle_to_quaternion(np.array([0.0, 1.0, 0.0]), 60.0, degrees=True),
    ])
    path = Path.from_frames(r, q)
    t_end = end_parameter(path)
    print(f"t_end = {t_end:.4f}, kinds = {[k.value for k in path.kinds]}")

    # 仿真: stopTime 时刻到达最后一帧
    stop_time = 2.0
    times = np.arange(0.0, stop_time + 1e-9, 0.5)
    rt, qt = sample_path(path, times, stop_time)
    for time, ri, qi in zip(times, rt, qt):
        print(f"  time={time:.2f}: r={ri}, q={qi}")

    # =========================================================================
    # 3. 原地旋转 + 端点速度为0
    # =========================================================================
    print("\n原地旋转:")

    r = np.zeros((3, 3))
    q = axis_angle_to_quaternion(np.tile([0.0, 0.0, 1.0], (3, 1)), np.array([0.0, 45.0, 90.0]), degrees=True)
    path = build_path(r, q, speeds=[0.0, 1.0, 0.0])
    print(f"t = {path.t}")

    _, q_mid = interpolate(path, 0.5 * end_parameter(path))
    print(f"q(t_end/2) = {q_mid}")

    # =========================================================================
    # 4. PyTorch 后端 + 批量查询
    # =========================================================================
    print("\nPyTorch 批量查询:")

    path = build_path(torch.tensor([[0.0, 0.0, 0.0], [3.0, 4.0, 0.0], [3.0, 4.0, 12.0]], dtype=torch.float64))
    query = torch.linspace(0.0, end_parameter(path), 5, dtype=torch.float64)
    print(f"r = {interpolate_position(path, query)}")

    print("\n✅ Done!")

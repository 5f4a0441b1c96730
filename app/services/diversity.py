"""Shannon エントロピーによる多様性指数"""

import math
from collections.abc import Iterable


def shannon_diversity_index(counts: Iterable[int]) -> float:
    """カウント分布の正規化 Shannon エントロピー（0〜1）を返す

    - 空、または全て 0 → 0（活動なし = 多様性なし）
    - 非ゼロが1カテゴリのみ → 0（ln(1) = 0 で割らない）
    - 非ゼロが全て同数 → 1
    """
    nonzero = [c for c in counts if c > 0]
    if not nonzero:
        return 0.0

    total = sum(nonzero)
    entropy = 0.0
    for count in nonzero:
        p = count / total
        entropy -= p * math.log(p)

    max_entropy = math.log(len(nonzero))
    if max_entropy <= 0:
        return 0.0
    # 浮動小数点誤差で 1 をわずかに超えないようクリップ
    return min(1.0, entropy / max_entropy)

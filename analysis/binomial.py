"""二項分布モジュール

設定推測の尤度計算に使う二項分布。
数千G規模の試行回数でも桁あふれしないよう、二項係数は対数の和で扱う。

  P(X = k) = C(n,k) * p^k * (1-p)^(n-k)
  log C(n,k) = Σ(log(n-i) - log(i+1))  (i = 0 .. k-1)
"""

import math


def log_binomial_coefficient(n: int, k: int) -> float:
    """二項係数 C(n,k) の対数（階乗を直接計算しない）

    k が 0〜n の範囲外なら C(n,k)=0 として -inf を返す。
    """
    if k < 0 or k > n:
        return -math.inf
    log_coef = 0.0
    for i in range(k):
        log_coef += math.log(n - i) - math.log(i + 1)
    return log_coef


def binomial_pmf(k: int, n: int, p: float) -> float:
    """二項分布の確率質量関数 P(X = k)"""
    if k < 0 or k > n or p < 0 or p > 1:
        return 0
    if n == 0:
        return 1 if k == 0 else 0
    if p == 0:
        return 1 if k == 0 else 0
    if p == 1:
        return 1 if k == n else 0

    log_prob = log_binomial_coefficient(n, k)
    log_prob += k * math.log(p) + (n - k) * math.log(1 - p)

    return math.exp(log_prob)


def binomial_cdf(k: int, n: int, p: float) -> float:
    """二項分布の累積分布関数 P(X <= k)"""
    total = 0
    for i in range(k + 1):
        total += binomial_pmf(i, n, p)
    return total
